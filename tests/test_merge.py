"""Tests for content hashing and the module/workout merge."""

import copy
from datetime import datetime, timedelta, timezone

from liftsync.models.base import SyncStatus
from liftsync.models.exercises import ExerciseInstance, SetGroup
from liftsync.models.module import Module
from liftsync.models.workout import Workout, WorkoutExercise
from liftsync.services.merge import (
    content_hash,
    merge_children,
    merge_modules,
    merge_workouts,
    needs_sync,
)

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def _at(minutes: int) -> datetime:
    return T0 + timedelta(minutes=minutes)


def _instance(name: str, order: int, minutes: int = 0, instance_id: str | None = None):
    kwargs = {"id": instance_id} if instance_id else {}
    return ExerciseInstance(
        name=name, order=order, created_at=T0, updated_at=_at(minutes), **kwargs
    )


class TestContentHash:
    """Tests for content hashing."""

    def test_ignores_sync_metadata(self, sample_module):
        other = copy.deepcopy(sample_module)
        other.updated_at = _at(500)
        other.created_at = _at(-500)
        other.sync_status = SyncStatus.SYNCED
        for exercise in other.exercises:
            exercise.updated_at = _at(600)
        assert content_hash(sample_module) == content_hash(other)
        assert not needs_sync(sample_module, other)

    def test_ignores_child_list_position(self, sample_module):
        other = copy.deepcopy(sample_module)
        other.exercises.reverse()
        assert content_hash(sample_module) == content_hash(other)

    def test_detects_content_change(self, sample_module):
        other = copy.deepcopy(sample_module)
        other.exercises[0].set_groups[0].target_weight = 235
        assert needs_sync(sample_module, other)

    def test_order_change_is_content(self, sample_module):
        other = copy.deepcopy(sample_module)
        other.exercises[0].order, other.exercises[1].order = 1, 0
        assert needs_sync(sample_module, other)

    def test_stable_hex_digest(self, sample_module):
        digest = content_hash(sample_module)
        assert len(digest) == 64
        assert digest == content_hash(sample_module)


class TestMergeChildren:
    """Tests for by-id child merging."""

    def test_newer_remote_child_wins(self):
        local = [_instance("Squat", 0, minutes=0, instance_id="e1")]
        remote = [_instance("Front Squat", 0, minutes=5, instance_id="e1")]
        merged = merge_children(local, remote)
        assert [c.name for c in merged] == ["Front Squat"]

    def test_tie_independent_of_argument_order(self):
        """Equal timestamps with different content resolve the same both ways."""
        a = [_instance("Squat", 0, minutes=5, instance_id="e1")]
        b = [_instance("Front Squat", 0, minutes=5, instance_id="e1")]
        ab = merge_children(a, b)
        ba = merge_children(b, a)
        assert [c.name for c in ab] == [c.name for c in ba]
        assert not needs_sync(ab[0], ba[0])

    def test_union_sorted_by_order(self):
        local = [_instance("Bench", 1, instance_id="b")]
        remote = [_instance("Row", 0, instance_id="a"), _instance("Dip", 2, instance_id="c")]
        merged = merge_children(local, remote)
        assert [c.name for c in merged] == ["Row", "Bench", "Dip"]

    def test_tombstone_drops_older_child(self):
        """A remote-only child deleted locally after its last edit stays deleted."""
        remote = [_instance("Curl", 0, minutes=5, instance_id="e1")]
        merged = merge_children([], remote, {"e1": _at(10)})
        assert merged == []

    def test_edit_after_tombstone_survives(self):
        remote = [_instance("Curl", 0, minutes=15, instance_id="e1")]
        merged = merge_children([], remote, {"e1": _at(10)})
        assert [c.id for c in merged] == ["e1"]

    def test_result_is_a_copy(self):
        local = [_instance("Squat", 0, instance_id="e1")]
        merged = merge_children(local, [])
        merged[0].name = "Changed"
        assert local[0].name == "Squat"


class TestMergeModules:
    """Tests for module merging."""

    def test_parent_fields_from_newer_side(self, sample_module):
        remote = copy.deepcopy(sample_module)
        remote.name = "Legs"
        remote.updated_at = sample_module.updated_at + timedelta(minutes=1)
        merged = merge_modules(sample_module, remote)
        assert merged.name == "Legs"
        assert merged.sync_status == SyncStatus.SYNCED
        assert merged.updated_at == remote.updated_at

    def test_concurrent_child_edits_both_kept(self, sample_module):
        """Each device edited a different exercise; both edits survive."""
        base = sample_module.updated_at
        local = copy.deepcopy(sample_module)
        remote = copy.deepcopy(sample_module)

        local.exercises[0].set_groups = [SetGroup(sets=5, target_reps=5, target_weight=235)]
        local.exercises[0].updated_at = base + timedelta(minutes=60)
        local.updated_at = base + timedelta(minutes=60)

        remote.exercises[1].notes = "slow eccentric"
        remote.exercises[1].updated_at = base + timedelta(minutes=90)
        remote.updated_at = base + timedelta(minutes=90)

        merged = merge_modules(local, remote)
        squat, rdl = merged.exercises
        assert squat.set_groups[0].target_weight == 235
        assert rdl.notes == "slow eccentric"
        assert needs_sync(local, merged)

    def test_created_at_is_earliest(self, sample_module):
        remote = copy.deepcopy(sample_module)
        remote.created_at = sample_module.created_at - timedelta(days=1)
        merged = merge_modules(sample_module, remote)
        assert merged.created_at == remote.created_at

    def test_identical_versions_need_no_write(self, sample_module):
        merged = merge_modules(sample_module, copy.deepcopy(sample_module))
        assert not needs_sync(sample_module, merged)

    def test_child_tombstone_applied(self):
        local = Module(name="Arms", created_at=T0, updated_at=_at(20))
        remote = Module(
            id=local.id,
            name="Arms",
            exercises=[_instance("Curl", 0, minutes=5, instance_id="e1")],
            created_at=T0,
            updated_at=_at(5),
        )
        merged = merge_modules(local, remote, {"e1": _at(20)})
        assert merged.exercises == []


class TestMergeWorkouts:
    """Tests for workout merging."""

    def test_standalone_exercises_merged_on_embedded_timestamp(self):
        shared = _instance("Burpee", 0, minutes=0, instance_id="x1")
        local = Workout(
            name="Finisher",
            standalone_exercises=[WorkoutExercise(exercise=shared, id="w1")],
            created_at=T0,
            updated_at=_at(0),
        )
        remote = copy.deepcopy(local)
        remote.standalone_exercises[0].exercise.notes = "chest to floor"
        remote.standalone_exercises[0].exercise.updated_at = _at(30)
        remote.updated_at = _at(30)

        merged = merge_workouts(local, remote)
        assert merged.standalone_exercises[0].exercise.notes == "chest to floor"

    def test_module_references_follow_newer_parent(self):
        local = Workout(name="Day A", created_at=T0, updated_at=_at(0))
        local.add_module("m1")
        local.updated_at = _at(0)
        remote = copy.deepcopy(local)
        remote.add_module("m2")
        remote.updated_at = _at(10)

        merged = merge_workouts(local, remote)
        assert merged.module_ids == ["m1", "m2"]
