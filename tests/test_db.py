"""Tests for the storage codec and repositories."""

import json
from datetime import datetime, timedelta, timezone

import aiosqlite
import pytest

from liftsync.db import codec
from liftsync.db.engine import init_db
from liftsync.db.repositories import (
    DeletionRecordRepository,
    FriendshipRepository,
    ModuleRepository,
    ProgramRepository,
    SessionRepository,
)
from liftsync.exceptions import PersistenceFailure
from liftsync.models.base import utc_now
from liftsync.models.deletion import DeletionEntityType, DeletionRecord
from liftsync.models.exercises import ExerciseInstance, SetGroup
from liftsync.models.module import Module
from liftsync.models.program import Program
from liftsync.models.social import Friendship
from liftsync.services.local_store import LocalStore

NOW = datetime(2026, 3, 11, 12, 0, tzinfo=timezone.utc)


class TestSentinelCodec:
    """Tests for optional-number sentinels at the storage edge."""

    def test_none_encodes_as_zero(self):
        assert codec.encode_optional_number(None) == 0
        assert codec.encode_optional_number(2.5) == 2.5

    def test_non_positive_decodes_as_none(self):
        assert codec.decode_optional_number(0) is None
        assert codec.decode_optional_number(-1) is None
        assert codec.decode_optional_number(None) is None
        assert codec.decode_optional_number(8) == 8

    def test_set_data_temperature_untouched(self):
        """Temperature can be zero or negative, so it is stored as-is."""
        encoded = codec.encode_set_data({"weight": None, "temperature": -3.0})
        assert encoded["weight"] == 0
        assert encoded["temperature"] == -3.0
        assert codec.decode_set_data({"weight": 0, "temperature": 0})["temperature"] == 0

    def test_module_document_has_no_null_targets(self):
        module = Module(
            name="Mobility",
            exercises=[ExerciseInstance(name="Stretch", set_groups=[SetGroup(sets=2)])],
        )
        encoded = codec.encode_module(module.to_dict())
        group = encoded["exercises"][0]["set_groups"][0]
        assert all(group[name] is not None for name in codec.SET_GROUP_SENTINEL_FIELDS)

    def test_zero_bodyweight_target_loads_as_none(self):
        """A legitimate zero target does not survive storage."""
        data = {"sets": 3, "target_weight": 0, "target_reps": 10}
        decoded = codec.decode_set_group(codec.encode_set_group(data))
        assert decoded["target_weight"] is None
        assert decoded["target_reps"] == 10


class TestEngine:
    """Tests for schema creation and migrations."""

    @pytest.mark.asyncio
    async def test_init_is_idempotent(self, temp_db_path):
        await init_db(temp_db_path)
        await init_db(temp_db_path)
        async with aiosqlite.connect(temp_db_path) as db:
            cursor = await db.execute("PRAGMA table_info(deletion_records)")
            columns = {row[1] for row in await cursor.fetchall()}
        assert "parent_id" in columns

    @pytest.mark.asyncio
    async def test_migration_adds_parent_id(self, temp_db_path):
        async with aiosqlite.connect(temp_db_path) as db:
            await db.execute(
                """
                CREATE TABLE deletion_records (
                    entity_type TEXT NOT NULL,
                    entity_id TEXT NOT NULL,
                    id TEXT NOT NULL,
                    deleted_at TEXT NOT NULL,
                    synced_at TEXT,
                    PRIMARY KEY (entity_type, entity_id)
                )
                """
            )
            await db.commit()

        await init_db(temp_db_path)

        repo = DeletionRecordRepository(temp_db_path)
        await repo.upsert(
            DeletionRecord(DeletionEntityType.EXERCISE_INSTANCE, "e1", parent_id="m1")
        )
        assert (await repo.get(DeletionEntityType.EXERCISE_INSTANCE, "e1")).parent_id == "m1"


class TestEntityRepository:
    """Tests for whole-document repositories."""

    @pytest.mark.asyncio
    async def test_save_and_find_module(self, db_path, sample_module):
        repo = ModuleRepository(db_path)
        await repo.save(sample_module)
        loaded = await repo.find(sample_module.id)
        assert loaded.name == "Lower Body"
        assert [e.name for e in loaded.exercises] == ["Squat", "Romanian Deadlift"]

    @pytest.mark.asyncio
    async def test_stored_document_uses_sentinels(self, db_path):
        module = Module(
            name="Core",
            exercises=[ExerciseInstance(name="Plank", set_groups=[SetGroup(sets=3)])],
        )
        await ModuleRepository(db_path).save(module)
        async with aiosqlite.connect(db_path) as db:
            cursor = await db.execute("SELECT data FROM modules WHERE id = ?", (module.id,))
            row = await cursor.fetchone()
        stored = json.loads(row[0])
        assert stored["exercises"][0]["set_groups"][0]["target_weight"] == 0

        loaded = await ModuleRepository(db_path).find(module.id)
        assert loaded.exercises[0].set_groups[0].target_weight is None

    @pytest.mark.asyncio
    async def test_save_is_upsert(self, db_path):
        repo = ProgramRepository(db_path)
        program = Program(name="Block A")
        await repo.save(program)
        program.name = "Block B"
        await repo.save(program)
        programs = await repo.load_all()
        assert [p.name for p in programs] == ["Block B"]

    @pytest.mark.asyncio
    async def test_delete_by_id(self, db_path):
        repo = ProgramRepository(db_path)
        program = Program(name="Block")
        await repo.save(program)
        assert await repo.delete_by_id(program.id)
        assert not await repo.delete_by_id(program.id)
        assert await repo.find(program.id) is None

    @pytest.mark.asyncio
    async def test_get_active_program(self, db_path):
        repo = ProgramRepository(db_path)
        await repo.save(Program(name="Old"))
        await repo.save(Program(name="Current", is_active=True))
        assert (await repo.get_active()).name == "Current"

    @pytest.mark.asyncio
    async def test_find_friendship_between(self, db_path):
        repo = FriendshipRepository(db_path)
        await repo.save(Friendship(requester_id="a", addressee_id="b"))
        assert await repo.find_between("b", "a") is not None
        assert await repo.find_between("a", "c") is None

    @pytest.mark.asyncio
    async def test_missing_schema_raises_persistence_failure(self, temp_db_path):
        """Store errors surface as PersistenceFailure."""
        with pytest.raises(PersistenceFailure) as exc:
            await ModuleRepository(temp_db_path).load_all()
        assert exc.value.entity == "module"


class TestSessionRepository:
    """Tests for session pagination."""

    @pytest.mark.asyncio
    async def test_recent_window_and_paging(self, db_path, make_session, make_exercise):
        repo = SessionRepository(db_path)
        for days_ago in (1, 10, 100, 200, 300):
            await repo.save(
                make_session(NOW - timedelta(days=days_ago), [make_exercise("Squat", [(100, 5)])])
            )

        recent = await repo.load_recent(90, now=NOW)
        assert [(NOW - s.date).days for s in recent] == [1, 10]

        page = await repo.load_more(recent[-1].date, limit=2)
        assert [(NOW - s.date).days for s in page] == [100, 200]

    @pytest.mark.asyncio
    async def test_sets_round_trip_through_sentinels(self, db_path, make_session, make_exercise):
        repo = SessionRepository(db_path)
        session = make_session(NOW, [make_exercise("Squat", [(None, 5)])])
        await repo.save(session)
        loaded = await repo.find(session.id)
        loaded_set = loaded.performed_exercises[0].completed_sets[0]
        assert loaded_set.weight is None
        assert loaded_set.reps == 5
        assert loaded_set.rpe is None

    @pytest.mark.asyncio
    async def test_for_workout(self, db_path, make_session, make_exercise):
        repo = SessionRepository(db_path)
        await repo.save(make_session(NOW, [], workout_id="w1"))
        await repo.save(make_session(NOW, [], workout_id="w2"))
        assert len(await repo.for_workout("w1")) == 1


class TestDeletionRecordRepository:
    """Tests for the deletion journal table."""

    @pytest.mark.asyncio
    async def test_upsert_replaces_and_resets_synced(self, db_path):
        repo = DeletionRecordRepository(db_path)
        await repo.upsert(
            DeletionRecord(DeletionEntityType.MODULE, "m1", deleted_at=NOW, synced_at=NOW)
        )
        later = NOW + timedelta(hours=1)
        await repo.upsert(DeletionRecord(DeletionEntityType.MODULE, "m1", deleted_at=later))

        record = await repo.get(DeletionEntityType.MODULE, "m1")
        assert record.deleted_at == later
        assert not record.synced
        assert await repo.count() == 1

    @pytest.mark.asyncio
    async def test_cleanup_keeps_unsynced(self, db_path):
        repo = DeletionRecordRepository(db_path)
        old = NOW - timedelta(days=60)
        await repo.upsert(DeletionRecord(DeletionEntityType.MODULE, "synced", old, synced_at=old))
        await repo.upsert(DeletionRecord(DeletionEntityType.MODULE, "pending", old))

        assert await repo.delete_synced_before(NOW - timedelta(days=30)) == 1
        remaining = await repo.list_all()
        assert [r.entity_id for r in remaining] == ["pending"]

    @pytest.mark.asyncio
    async def test_list_children(self, db_path):
        repo = DeletionRecordRepository(db_path)
        await repo.upsert(
            DeletionRecord(DeletionEntityType.EXERCISE_INSTANCE, "e1", parent_id="m1")
        )
        await repo.upsert(
            DeletionRecord(DeletionEntityType.EXERCISE_INSTANCE, "e2", parent_id="m2")
        )
        children = await repo.list_children(DeletionEntityType.EXERCISE_INSTANCE, "m1")
        assert [r.entity_id for r in children] == ["e1"]

    @pytest.mark.asyncio
    async def test_child_key_is_type_and_id(self, db_path):
        """Re-deleting a child under another parent moves its single tombstone."""
        repo = DeletionRecordRepository(db_path)
        await repo.upsert(
            DeletionRecord(DeletionEntityType.WORKOUT_EXERCISE, "x1", parent_id="w1")
        )
        await repo.upsert(
            DeletionRecord(DeletionEntityType.WORKOUT_EXERCISE, "x1", parent_id="w2")
        )

        assert len(await repo.list_by_type(DeletionEntityType.WORKOUT_EXERCISE)) == 1
        assert await repo.list_children(DeletionEntityType.WORKOUT_EXERCISE, "w1") == []
        moved = await repo.list_children(DeletionEntityType.WORKOUT_EXERCISE, "w2")
        assert [r.entity_id for r in moved] == ["x1"]


class TestLocalStore:
    """Tests for the loaded collections."""

    @pytest.mark.asyncio
    async def test_reload_then_page_older_sessions(self, db_path, make_session, make_exercise):
        store = LocalStore(db_path, session_window_days=30)
        now = utc_now()
        for days_ago in (2, 45, 60):
            await store.session_repository.save(
                make_session(now - timedelta(days=days_ago), [make_exercise("Bench", [(80, 8)])])
            )
        await store.module_repository.save(Module(name="Upper"))

        await store.reload()
        assert len(store.sessions) == 1
        assert [m.name for m in store.modules] == ["Upper"]

        page = await store.load_more_sessions(limit=1)
        assert len(page) == 1
        assert len(store.sessions) == 2
        assert (now - store.sessions[-1].date).days == 45
