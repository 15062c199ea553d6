"""Tests for data models."""

from datetime import datetime, timedelta, timezone

import pytest

from liftsync.exceptions import ValidationError
from liftsync.models.base import SyncStatus, parse_datetime
from liftsync.models.deletion import DeletionEntityType, DeletionRecord
from liftsync.models.exercises import (
    ExerciseInstance,
    ExerciseTemplate,
    ExerciseType,
    MetricType,
    SetGroup,
)
from liftsync.models.module import Module
from liftsync.models.program import (
    Program,
    ProgramWorkoutSlot,
    ProgressionMetric,
    ProgressionRule,
    RulePreset,
    ScheduleType,
)
from liftsync.models.session import Session
from liftsync.models.social import (
    Conversation,
    Friendship,
    FriendshipStatus,
    Message,
    Post,
    PostContentType,
)
from liftsync.models.workout import Workout


class TestExerciseInstance:
    """Tests for ExerciseInstance validation and defaults."""

    def test_empty_name_rejected(self):
        """An instance needs a name or a template reference."""
        with pytest.raises(ValidationError) as exc:
            ExerciseInstance(name="  ")
        assert exc.value.field == "name"

    def test_template_reference_allows_empty_name(self):
        instance = ExerciseInstance(template_id="tpl-1")
        assert instance.name == ""

    def test_negative_order_rejected(self):
        with pytest.raises(ValidationError):
            ExerciseInstance(name="Squat", order=-1)

    def test_effective_metrics_default_by_type(self):
        assert ExerciseInstance(name="Squat").effective_metrics == [
            MetricType.WEIGHT,
            MetricType.REPS,
        ]
        plank = ExerciseInstance(name="Plank", exercise_type=ExerciseType.ISOMETRIC)
        assert plank.effective_metrics == [MetricType.HOLD_TIME]

    def test_from_dict_without_id_gets_fresh_id(self):
        """Documents missing an id are treated as new children."""
        a = ExerciseInstance.from_dict({"name": "Squat"})
        b = ExerciseInstance.from_dict({"name": "Squat"})
        assert a.id and b.id and a.id != b.id

    def test_round_trip_keeps_set_groups(self):
        instance = ExerciseInstance(
            name="Bench Press", set_groups=[SetGroup(sets=3, target_reps=8, target_weight=0)]
        )
        restored = ExerciseInstance.from_dict(instance.to_dict())
        assert restored.set_groups[0].target_reps == 8
        # In memory a zero target survives; only storage applies sentinels
        assert restored.set_groups[0].target_weight == 0


class TestExerciseTemplate:
    """Tests for custom exercise templates."""

    def test_name_required(self):
        with pytest.raises(ValidationError):
            ExerciseTemplate(name="")


class TestModule:
    """Tests for Module editing helpers."""

    def test_add_exercise_appends_with_order(self):
        module = Module(name="Push")
        module.add_exercise(ExerciseInstance(name="Bench"))
        module.add_exercise(ExerciseInstance(name="Dip"))
        assert [e.order for e in module.exercises] == [0, 1]

    def test_remove_exercise_reindexes(self):
        module = Module(name="Push")
        for name in ("Bench", "Dip", "Fly"):
            module.add_exercise(ExerciseInstance(name=name))
        removed = module.remove_exercise(module.exercises[0].id)
        assert removed.name == "Bench"
        assert [(e.name, e.order) for e in module.sorted_exercises] == [("Dip", 0), ("Fly", 1)]

    def test_edit_marks_pending_sync(self):
        module = Module(name="Push", sync_status=SyncStatus.SYNCED)
        module.add_exercise(ExerciseInstance(name="Bench"))
        assert module.sync_status == SyncStatus.PENDING_SYNC

    def test_superset_grouping(self):
        module = Module(name="Arms")
        for name in ("Curl", "Pushdown", "Shrug"):
            module.add_exercise(ExerciseInstance(name=name))
        curl, pushdown, shrug = module.exercises
        group_id = module.create_superset([curl.id, pushdown.id])

        groups = module.grouped_exercises()
        assert [[e.name for e in g] for g in groups] == [["Curl", "Pushdown"], ["Shrug"]]

        module.break_superset(group_id)
        assert all(e.superset_group_id is None for e in module.exercises)

    def test_superset_needs_two_exercises(self):
        module = Module(name="Arms")
        module.add_exercise(ExerciseInstance(name="Curl"))
        assert module.create_superset([module.exercises[0].id]) is None

    def test_from_dict_defaults_to_synced(self):
        module = Module.from_dict({"id": "m1", "name": "Core"})
        assert module.sync_status == SyncStatus.SYNCED


class TestWorkout:
    """Tests for Workout module references and standalone exercises."""

    def test_module_ids_follow_order(self):
        workout = Workout(name="Full Body")
        workout.add_module("a")
        workout.add_module("b")
        workout.module_references[0].order = 5
        assert workout.module_ids == ["b", "a"]

    def test_remove_module_reindexes(self):
        workout = Workout(name="Full Body")
        for module_id in ("a", "b", "c"):
            workout.add_module(module_id)
        workout.remove_module("b")
        assert [(r.module_id, r.order) for r in workout.module_references] == [("a", 0), ("c", 1)]

    def test_standalone_exercise_uses_embedded_timestamp(self):
        workout = Workout(name="Finisher")
        entry = workout.add_standalone_exercise(ExerciseInstance(name="Burpee"))
        assert entry.updated_at == entry.exercise.updated_at


class TestProgram:
    """Tests for Program progression configuration and schedule."""

    def test_override_beats_default_rule(self):
        default = ProgressionRule()
        override = ProgressionRule(percentage_increase=10)
        program = Program(name="Block", default_progression_rule=default)
        program.set_progression_override("inst-1", override)
        assert program.progression_rule_for("inst-1") is override
        assert program.progression_rule_for("inst-2") is default

    def test_enabled_requires_program_switch(self):
        program = Program(name="Block")
        program.set_progression_enabled("inst-1", True)
        assert not program.is_progression_enabled_for("inst-1")
        program.progression_enabled = True
        assert program.is_progression_enabled_for("inst-1")

    def test_rule_validation(self):
        with pytest.raises(ValidationError):
            ProgressionRule(rounding_increment=0)
        with pytest.raises(ValidationError):
            ProgressionRule(percentage_increase=-1)

    def test_rep_preset(self):
        rule = ProgressionRule.from_preset(RulePreset.REP_PROGRESSION)
        assert rule.target_metric == ProgressionMetric.REPS
        assert rule.rounding_increment == 1.0

    def test_round_trip(self):
        program = Program(name="Block", progression_enabled=True)
        program.set_progression_enabled("inst-1", True)
        program.set_progression_override("inst-1", ProgressionRule(percentage_increase=5))
        restored = Program.from_dict(program.to_dict())
        assert restored.progression_enabled_exercises == {"inst-1"}
        assert restored.exercise_progression_overrides["inst-1"].percentage_increase == 5

    def test_slots_on_date(self):
        start = datetime(2026, 3, 2, tzinfo=timezone.utc)  # Monday
        program = Program(name="Block", start_date=start, duration_weeks=2)
        program.add_slot(ProgramWorkoutSlot(workout_id="w-mon", day_of_week=0))
        program.add_slot(
            ProgramWorkoutSlot(
                workout_id="w-test",
                schedule_type=ScheduleType.SPECIFIC_WEEK,
                day_of_week=0,
                week_number=2,
            )
        )
        program.add_slot(
            ProgramWorkoutSlot(
                workout_id="w-date", schedule_type=ScheduleType.SPECIFIC_DATE, specific_date_offset=3
            )
        )

        week1 = [s.workout_id for s in program.slots_on(start.date())]
        week2 = [s.workout_id for s in program.slots_on(start.date() + timedelta(days=7))]
        thursday = [s.workout_id for s in program.slots_on(start.date() + timedelta(days=3))]
        after = program.slots_on(start.date() + timedelta(days=14))

        assert week1 == ["w-mon"]
        assert week2 == ["w-mon", "w-test"]
        assert thursday == ["w-date"]
        assert after == []

    def test_computed_end_date(self):
        start = datetime(2026, 1, 1, tzinfo=timezone.utc)
        program = Program(name="Block", start_date=start, duration_weeks=4)
        assert program.computed_end_date == start + timedelta(weeks=4)


class TestSession:
    """Tests for Session derived values."""

    def test_skipped_modules_excluded(self, make_session, make_exercise):
        session = make_session(
            datetime(2026, 3, 1, tzinfo=timezone.utc),
            [make_exercise("Squat", [(100, 5)])],
            skipped=True,
        )
        assert session.performed_exercises == []
        assert session.total_volume == 0

    def test_total_volume_counts_completed_sets(self, make_session, make_exercise):
        session = make_session(
            datetime(2026, 3, 1, tzinfo=timezone.utc),
            [make_exercise("Squat", [(100, 5), (100, 5), (100, 5, False)])],
        )
        assert session.total_volume == 1000

    def test_round_trip(self, make_session, make_exercise):
        session = make_session(
            datetime(2026, 3, 1, tzinfo=timezone.utc), [make_exercise("Squat", [(100, 5)])]
        )
        restored = Session.from_dict(session.to_dict())
        assert restored.date == session.date
        assert restored.performed_exercises[0].completed_sets[0].weight == 100


class TestDeletionRecord:
    """Tests for tombstone records."""

    def test_child_types(self):
        assert DeletionEntityType.EXERCISE_INSTANCE.is_child
        assert DeletionEntityType.WORKOUT_EXERCISE.is_child
        assert not DeletionEntityType.MODULE.is_child

    def test_round_trip(self):
        record = DeletionRecord(
            entity_type=DeletionEntityType.EXERCISE_INSTANCE, entity_id="e1", parent_id="m1"
        )
        restored = DeletionRecord.from_dict(record.to_dict())
        assert restored.key == (DeletionEntityType.EXERCISE_INSTANCE, "e1")
        assert restored.parent_id == "m1"
        assert not restored.synced


class TestFriendship:
    """Tests for the friendship model."""

    def test_connects_either_direction(self):
        friendship = Friendship(requester_id="a", addressee_id="b")
        assert friendship.connects("b", "a")
        assert friendship.other_user("a") == "b"
        assert friendship.status == FriendshipStatus.PENDING

    def test_round_trip_defaults_synced(self):
        """Documents without a sync status come from the remote."""
        friendship = Friendship.from_dict({"id": "f1", "requester_id": "a", "addressee_id": "b"})
        assert friendship.sync_status == SyncStatus.SYNCED


class TestSocialContent:
    """Tests for conversations, messages and posts."""

    def test_conversation_round_trip(self):
        conversation = Conversation(
            participant_ids=["a", "b"], last_message_at=datetime(2026, 3, 1, tzinfo=timezone.utc)
        )
        restored = Conversation.from_dict(conversation.to_dict())
        assert restored.participant_ids == ["a", "b"]
        assert restored.last_message_at == conversation.last_message_at

    def test_message_requires_sender(self):
        with pytest.raises(KeyError):
            Message.from_dict({"conversation_id": "c1", "text": "hi"})
        message = Message.from_dict({"conversation_id": "c1", "sender_id": "a", "text": "hi"})
        assert message.read_at is None

    def test_post_attachment(self):
        post = Post(author_id="a", content_type=PostContentType.SESSION, content_id="s1")
        restored = Post.from_dict(post.to_dict())
        assert restored.content_type == PostContentType.SESSION
        assert restored.content_id == "s1"


class TestParseDatetime:
    """Tests for timestamp parsing."""

    def test_naive_becomes_utc(self):
        assert parse_datetime("2026-03-01T10:00:00").tzinfo == timezone.utc

    def test_z_suffix(self):
        parsed = parse_datetime("2026-03-01T10:00:00Z")
        assert parsed == datetime(2026, 3, 1, 10, tzinfo=timezone.utc)

    def test_empty(self):
        assert parse_datetime("") is None
