"""Reusable workout building blocks."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .base import SyncStatus, format_datetime, new_id, require_datetime, utc_now
from .exercises import ExerciseInstance


class ModuleType(str, Enum):
    """Role a module plays inside a workout."""

    WARMUP = "warmup"
    PREHAB = "prehab"
    EXPLOSIVE = "explosive"
    STRENGTH = "strength"
    CARDIO_LONG = "cardio_long"
    CARDIO_SPEED = "cardio_speed"
    RECOVERY = "recovery"


@dataclass
class Module:
    """A named, ordered group of exercises that workouts reference."""

    name: str
    type: ModuleType = ModuleType.STRENGTH
    exercises: list[ExerciseInstance] = field(default_factory=list)
    notes: str | None = None
    estimated_duration: int | None = None  # minutes
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    sync_status: SyncStatus = SyncStatus.PENDING_SYNC

    def _touch(self) -> None:
        self.updated_at = utc_now()
        self.sync_status = SyncStatus.PENDING_SYNC

    @property
    def sorted_exercises(self) -> list[ExerciseInstance]:
        return sorted(self.exercises, key=lambda e: e.order)

    def add_exercise(self, exercise: ExerciseInstance) -> None:
        """Append an exercise at the end of the module."""
        exercise.order = len(self.exercises)
        self.exercises.append(exercise)
        self._touch()

    def remove_exercise(self, exercise_id: str) -> ExerciseInstance | None:
        """Remove an exercise and close the gap in ``order``."""
        removed = None
        remaining = []
        for exercise in self.sorted_exercises:
            if exercise.id == exercise_id:
                removed = exercise
            else:
                remaining.append(exercise)
        if removed is None:
            return None
        for index, exercise in enumerate(remaining):
            exercise.order = index
        self.exercises = remaining
        self._touch()
        return removed

    def update_exercise(self, exercise: ExerciseInstance) -> bool:
        """Replace the exercise with the same id, stamping both timestamps."""
        for index, existing in enumerate(self.exercises):
            if existing.id == exercise.id:
                exercise.touch()
                self.exercises[index] = exercise
                self._touch()
                return True
        return False

    def grouped_exercises(self) -> list[list[ExerciseInstance]]:
        """Group exercises into supersets, keeping module order.

        Exercises sharing a ``superset_group_id`` are placed in the group
        opened by the first of them; everything else is a group of one.
        """
        groups: list[list[ExerciseInstance]] = []
        by_superset: dict[str, list[ExerciseInstance]] = {}
        for exercise in self.sorted_exercises:
            group_id = exercise.superset_group_id
            if group_id is None:
                groups.append([exercise])
            elif group_id in by_superset:
                by_superset[group_id].append(exercise)
            else:
                by_superset[group_id] = [exercise]
                groups.append(by_superset[group_id])
        return groups

    def create_superset(self, exercise_ids: list[str]) -> str | None:
        """Link two or more exercises into one superset."""
        if len(exercise_ids) < 2:
            return None
        group_id = new_id()
        for exercise in self.exercises:
            if exercise.id in exercise_ids:
                exercise.superset_group_id = group_id
                exercise.touch()
        self._touch()
        return group_id

    def break_superset(self, group_id: str) -> None:
        """Unlink every exercise in a superset."""
        for exercise in self.exercises:
            if exercise.superset_group_id == group_id:
                exercise.superset_group_id = None
                exercise.touch()
        self._touch()

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "exercises": [e.to_dict() for e in self.exercises],
            "notes": self.notes,
            "estimated_duration": self.estimated_duration,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
            "sync_status": self.sync_status.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Module":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or new_id(),
            name=data.get("name", ""),
            type=ModuleType(data.get("type", "strength")),
            exercises=[ExerciseInstance.from_dict(e) for e in data.get("exercises", [])],
            notes=data.get("notes"),
            estimated_duration=data.get("estimated_duration"),
            created_at=require_datetime(data.get("created_at")),
            updated_at=require_datetime(data.get("updated_at")),
            sync_status=SyncStatus(data.get("sync_status", "synced")),
        )
