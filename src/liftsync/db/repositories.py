"""Data access layer for liftsync."""

import json
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generic, TypeVar

import aiosqlite

from ..exceptions import PersistenceFailure
from ..models.base import parse_datetime, utc_now
from ..models.deletion import DeletionEntityType, DeletionRecord
from ..models.exercises import ExerciseTemplate
from ..models.module import Module
from ..models.program import Program
from ..models.session import Session
from ..models.social import Friendship
from ..models.workout import Workout
from ..utils.logging import get_logger
from . import codec
from .engine import get_db_path

logger = get_logger(__name__)

T = TypeVar("T")


def _ts(value: datetime) -> str:
    """Store timestamps in UTC so that string order matches time order."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


class _Repository:
    """Connection handling shared by all repositories."""

    entity_name = "entity"

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()

    @asynccontextmanager
    async def _connect(self, action: str):
        """Open a connection, turning store errors into PersistenceFailure."""
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                yield db
        except aiosqlite.Error as e:
            logger.error(
                "store operation failed",
                entity=self.entity_name,
                action=action,
                error=str(e),
            )
            raise PersistenceFailure(
                self.entity_name,
                f"Failed to {action} {self.entity_name}: {e}",
                {"entity": self.entity_name, "action": action},
            ) from e


class EntityRepository(_Repository, Generic[T]):
    """Whole-document repository keyed by entity id."""

    table: str
    model: type

    def _encode(self, entity: T) -> dict:
        return entity.to_dict()

    def _decode(self, data: dict) -> T:
        return self.model.from_dict(data)

    def _row_to_entity(self, row: aiosqlite.Row) -> T:
        return self._decode(json.loads(row["data"]))

    async def load_all(self) -> list[T]:
        """Load every stored entity, most recently updated first."""
        async with self._connect("load") as db:
            cursor = await db.execute(f"SELECT data FROM {self.table} ORDER BY updated_at DESC")
            rows = await cursor.fetchall()
        return [self._row_to_entity(row) for row in rows]

    async def find(self, entity_id: str) -> T | None:
        """Get an entity by id."""
        async with self._connect("find") as db:
            cursor = await db.execute(f"SELECT data FROM {self.table} WHERE id = ?", (entity_id,))
            row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_entity(row)

    async def save(self, entity: T) -> None:
        """Insert or replace an entity."""
        async with self._connect("save") as db:
            await db.execute(
                f"""
                INSERT INTO {self.table} (id, updated_at, data) VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    updated_at = excluded.updated_at,
                    data = excluded.data
                """,
                (entity.id, _ts(entity.updated_at), json.dumps(self._encode(entity))),
            )
            await db.commit()

    async def delete(self, entity: T) -> None:
        await self.delete_by_id(entity.id)

    async def delete_by_id(self, entity_id: str) -> bool:
        """Delete an entity by id. Returns whether a row was removed."""
        async with self._connect("delete") as db:
            cursor = await db.execute(f"DELETE FROM {self.table} WHERE id = ?", (entity_id,))
            await db.commit()
            return cursor.rowcount > 0


class ModuleRepository(EntityRepository[Module]):
    table = "modules"
    entity_name = "module"
    model = Module

    def _encode(self, entity: Module) -> dict:
        return codec.encode_module(entity.to_dict())

    def _decode(self, data: dict) -> Module:
        return Module.from_dict(codec.decode_module(data))


class WorkoutRepository(EntityRepository[Workout]):
    table = "workouts"
    entity_name = "workout"
    model = Workout

    def _encode(self, entity: Workout) -> dict:
        return codec.encode_workout(entity.to_dict())

    def _decode(self, data: dict) -> Workout:
        return Workout.from_dict(codec.decode_workout(data))


class ProgramRepository(EntityRepository[Program]):
    table = "programs"
    entity_name = "program"
    model = Program

    async def get_active(self) -> Program | None:
        """Most recently updated active program, if any."""
        for program in await self.load_all():
            if program.is_active:
                return program
        return None


class ExerciseTemplateRepository(EntityRepository[ExerciseTemplate]):
    table = "custom_exercises"
    entity_name = "custom_exercise"
    model = ExerciseTemplate


class FriendshipRepository(EntityRepository[Friendship]):
    table = "friendships"
    entity_name = "friendship"
    model = Friendship

    async def find_between(self, user_a: str, user_b: str) -> Friendship | None:
        """The relationship linking two users in either direction."""
        for friendship in await self.load_all():
            if friendship.connects(user_a, user_b):
                return friendship
        return None


class SessionRepository(EntityRepository[Session]):
    """Sessions with date-cursor pagination."""

    table = "sessions"
    entity_name = "session"
    model = Session

    def _encode(self, entity: Session) -> dict:
        return codec.encode_session(entity.to_dict())

    def _decode(self, data: dict) -> Session:
        return Session.from_dict(codec.decode_session(data))

    async def load_all(self) -> list[Session]:
        """Every session, newest first by date."""
        async with self._connect("load") as db:
            cursor = await db.execute("SELECT data FROM sessions ORDER BY date DESC")
            rows = await cursor.fetchall()
        return [self._row_to_entity(row) for row in rows]

    async def save(self, entity: Session) -> None:
        """Insert or replace a session."""
        async with self._connect("save") as db:
            await db.execute(
                """
                INSERT INTO sessions (id, workout_id, date, updated_at, data)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    workout_id = excluded.workout_id,
                    date = excluded.date,
                    updated_at = excluded.updated_at,
                    data = excluded.data
                """,
                (
                    entity.id,
                    entity.workout_id,
                    _ts(entity.date),
                    _ts(entity.updated_at),
                    json.dumps(self._encode(entity)),
                ),
            )
            await db.commit()

    async def load_recent(self, window_days: int, now: datetime | None = None) -> list[Session]:
        """Sessions dated within the last ``window_days``, newest first."""
        cutoff = (now or utc_now()) - timedelta(days=window_days)
        async with self._connect("load") as db:
            cursor = await db.execute(
                "SELECT data FROM sessions WHERE date >= ? ORDER BY date DESC",
                (_ts(cutoff),),
            )
            rows = await cursor.fetchall()
        return [self._row_to_entity(row) for row in rows]

    async def load_more(self, before: datetime, limit: int = 50) -> list[Session]:
        """The next page of sessions strictly older than ``before``."""
        async with self._connect("load") as db:
            cursor = await db.execute(
                "SELECT data FROM sessions WHERE date < ? ORDER BY date DESC LIMIT ?",
                (_ts(before), limit),
            )
            rows = await cursor.fetchall()
        return [self._row_to_entity(row) for row in rows]

    async def for_workout(self, workout_id: str) -> list[Session]:
        """All sessions of one workout, newest first."""
        async with self._connect("load") as db:
            cursor = await db.execute(
                "SELECT data FROM sessions WHERE workout_id = ? ORDER BY date DESC",
                (workout_id,),
            )
            rows = await cursor.fetchall()
        return [self._row_to_entity(row) for row in rows]


class DeletionRecordRepository(_Repository):
    """Storage for the deletion journal."""

    entity_name = "deletion_record"

    def _row_to_record(self, row: aiosqlite.Row) -> DeletionRecord:
        return DeletionRecord(
            id=row["id"],
            entity_type=DeletionEntityType(row["entity_type"]),
            entity_id=row["entity_id"],
            deleted_at=parse_datetime(row["deleted_at"]),
            synced_at=parse_datetime(row["synced_at"]),
            parent_id=row["parent_id"],
        )

    async def upsert(self, record: DeletionRecord) -> None:
        """Write a record, replacing any existing one for the same key.

        The key is ``(entity_type, entity_id)``; child ids are globally unique,
        so ``parent_id`` is stored for lookup only and follows the latest write.
        """
        async with self._connect("save") as db:
            await db.execute(
                """
                INSERT INTO deletion_records
                (entity_type, entity_id, id, deleted_at, synced_at, parent_id)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(entity_type, entity_id) DO UPDATE SET
                    deleted_at = excluded.deleted_at,
                    synced_at = excluded.synced_at,
                    parent_id = excluded.parent_id
                """,
                (
                    record.entity_type.value,
                    record.entity_id,
                    record.id,
                    _ts(record.deleted_at),
                    _ts(record.synced_at) if record.synced_at else None,
                    record.parent_id,
                ),
            )
            await db.commit()

    async def get(self, entity_type: DeletionEntityType, entity_id: str) -> DeletionRecord | None:
        async with self._connect("find") as db:
            cursor = await db.execute(
                "SELECT * FROM deletion_records WHERE entity_type = ? AND entity_id = ?",
                (entity_type.value, entity_id),
            )
            row = await cursor.fetchone()
        return self._row_to_record(row) if row else None

    async def list_by_type(self, entity_type: DeletionEntityType) -> list[DeletionRecord]:
        async with self._connect("load") as db:
            cursor = await db.execute(
                "SELECT * FROM deletion_records WHERE entity_type = ? ORDER BY deleted_at",
                (entity_type.value,),
            )
            rows = await cursor.fetchall()
        return [self._row_to_record(row) for row in rows]

    async def list_children(
        self, entity_type: DeletionEntityType, parent_id: str
    ) -> list[DeletionRecord]:
        """Child-grain tombstones belonging to one parent."""
        async with self._connect("load") as db:
            cursor = await db.execute(
                "SELECT * FROM deletion_records WHERE entity_type = ? AND parent_id = ?",
                (entity_type.value, parent_id),
            )
            rows = await cursor.fetchall()
        return [self._row_to_record(row) for row in rows]

    async def list_unsynced(self) -> list[DeletionRecord]:
        async with self._connect("load") as db:
            cursor = await db.execute(
                "SELECT * FROM deletion_records WHERE synced_at IS NULL ORDER BY deleted_at"
            )
            rows = await cursor.fetchall()
        return [self._row_to_record(row) for row in rows]

    async def list_all(self) -> list[DeletionRecord]:
        async with self._connect("load") as db:
            cursor = await db.execute("SELECT * FROM deletion_records ORDER BY deleted_at")
            rows = await cursor.fetchall()
        return [self._row_to_record(row) for row in rows]

    async def mark_synced(
        self,
        entity_type: DeletionEntityType,
        entity_id: str,
        synced_at: datetime | None = None,
    ) -> bool:
        async with self._connect("save") as db:
            cursor = await db.execute(
                """
                UPDATE deletion_records SET synced_at = ?
                WHERE entity_type = ? AND entity_id = ?
                """,
                (_ts(synced_at or utc_now()), entity_type.value, entity_id),
            )
            await db.commit()
            return cursor.rowcount > 0

    async def list_synced_before(self, cutoff: datetime) -> list[DeletionRecord]:
        async with self._connect("load") as db:
            cursor = await db.execute(
                """
                SELECT * FROM deletion_records
                WHERE synced_at IS NOT NULL AND deleted_at < ?
                ORDER BY deleted_at
                """,
                (_ts(cutoff),),
            )
            rows = await cursor.fetchall()
        return [self._row_to_record(row) for row in rows]

    async def delete_synced_before(self, cutoff: datetime) -> int:
        """Drop synced records deleted before ``cutoff``. Unsynced rows are kept."""
        async with self._connect("delete") as db:
            cursor = await db.execute(
                "DELETE FROM deletion_records WHERE synced_at IS NOT NULL AND deleted_at < ?",
                (_ts(cutoff),),
            )
            await db.commit()
            return cursor.rowcount

    async def remove(self, entity_type: DeletionEntityType, entity_id: str) -> bool:
        async with self._connect("delete") as db:
            cursor = await db.execute(
                "DELETE FROM deletion_records WHERE entity_type = ? AND entity_id = ?",
                (entity_type.value, entity_id),
            )
            await db.commit()
            return cursor.rowcount > 0

    async def count(self, entity_type: DeletionEntityType | None = None) -> int:
        async with self._connect("load") as db:
            if entity_type is None:
                cursor = await db.execute("SELECT COUNT(*) FROM deletion_records")
            else:
                cursor = await db.execute(
                    "SELECT COUNT(*) FROM deletion_records WHERE entity_type = ?",
                    (entity_type.value,),
                )
            row = await cursor.fetchone()
        return row[0]
