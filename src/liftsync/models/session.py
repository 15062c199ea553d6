"""Logged training sessions."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .base import SyncStatus, format_datetime, new_id, parse_datetime, require_datetime, utc_now
from .exercises import ExerciseType
from .module import ModuleType
from .program import ProgressionRecommendation, ProgressionSuggestion


class Side(str, Enum):
    """Side worked in a unilateral set."""

    LEFT = "left"
    RIGHT = "right"
    BOTH = "both"


_SET_METRICS = (
    "weight",
    "reps",
    "rpe",
    "duration",
    "distance",
    "pace",
    "avg_heart_rate",
    "hold_time",
    "intensity",
    "height",
    "quality",
    "temperature",
    "rest_after",
)


@dataclass
class SetData:
    """One performed set. Every metric is optional."""

    set_number: int
    weight: float | None = None
    reps: int | None = None
    rpe: int | None = None
    completed: bool = False
    duration: int | None = None  # seconds
    distance: float | None = None
    pace: float | None = None  # seconds per unit distance
    avg_heart_rate: int | None = None
    hold_time: int | None = None  # seconds
    intensity: int | None = None  # 0-10
    height: float | None = None
    quality: int | None = None  # 1-5
    temperature: float | None = None
    rest_after: int | None = None  # seconds
    side: Side | None = None
    id: str = field(default_factory=new_id)

    @property
    def has_strength_data(self) -> bool:
        return self.weight is not None and self.reps is not None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        data = {"id": self.id, "set_number": self.set_number, "completed": self.completed}
        for name in _SET_METRICS:
            data[name] = getattr(self, name)
        data["side"] = self.side.value if self.side else None
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SetData":
        """Create from dictionary."""
        metrics = {name: data.get(name) for name in _SET_METRICS}
        return cls(
            id=data.get("id") or new_id(),
            set_number=data.get("set_number", 1),
            completed=data.get("completed", False),
            side=Side(data["side"]) if data.get("side") else None,
            **metrics,
        )


@dataclass
class CompletedSetGroup:
    """Sets performed against one prescribed set group."""

    set_group_id: str | None = None
    sets: list[SetData] = field(default_factory=list)
    rest_period: int | None = None
    id: str = field(default_factory=new_id)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "set_group_id": self.set_group_id,
            "rest_period": self.rest_period,
            "sets": [s.to_dict() for s in self.sets],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CompletedSetGroup":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or new_id(),
            set_group_id=data.get("set_group_id"),
            rest_period=data.get("rest_period"),
            sets=[SetData.from_dict(s) for s in data.get("sets", [])],
        )


@dataclass
class SessionExercise:
    """An exercise as performed during a session.

    ``source_exercise_instance_id`` links back to the exercise instance the
    entry was generated from; per-exercise progression state is keyed by it.
    ``progression_suggestion`` is the suggestion shown when the session was
    built, kept so the outcome can be inferred afterwards.
    """

    exercise_name: str
    exercise_id: str | None = None
    exercise_type: ExerciseType = ExerciseType.STRENGTH
    completed_set_groups: list[CompletedSetGroup] = field(default_factory=list)
    notes: str | None = None
    superset_group_id: str | None = None
    source_exercise_instance_id: str | None = None
    progression_recommendation: ProgressionRecommendation | None = None
    progression_suggestion: ProgressionSuggestion | None = None
    id: str = field(default_factory=new_id)

    @property
    def all_sets(self) -> list[SetData]:
        return [s for group in self.completed_set_groups for s in group.sets]

    @property
    def completed_sets(self) -> list[SetData]:
        return [s for s in self.all_sets if s.completed]

    @property
    def has_completed_data(self) -> bool:
        """At least one completed set with both weight and reps."""
        return any(s.has_strength_data for s in self.completed_sets)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "exercise_id": self.exercise_id,
            "exercise_name": self.exercise_name,
            "exercise_type": self.exercise_type.value,
            "completed_set_groups": [g.to_dict() for g in self.completed_set_groups],
            "notes": self.notes,
            "superset_group_id": self.superset_group_id,
            "source_exercise_instance_id": self.source_exercise_instance_id,
            "progression_recommendation": (
                self.progression_recommendation.value if self.progression_recommendation else None
            ),
            "progression_suggestion": (
                self.progression_suggestion.to_dict() if self.progression_suggestion else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SessionExercise":
        """Create from dictionary."""
        recommendation = data.get("progression_recommendation")
        suggestion = data.get("progression_suggestion")
        return cls(
            id=data.get("id") or new_id(),
            exercise_id=data.get("exercise_id"),
            exercise_name=data.get("exercise_name", ""),
            exercise_type=ExerciseType(data.get("exercise_type", "strength")),
            completed_set_groups=[
                CompletedSetGroup.from_dict(g) for g in data.get("completed_set_groups", [])
            ],
            notes=data.get("notes"),
            superset_group_id=data.get("superset_group_id"),
            source_exercise_instance_id=data.get("source_exercise_instance_id"),
            progression_recommendation=(
                ProgressionRecommendation(recommendation) if recommendation else None
            ),
            progression_suggestion=(
                ProgressionSuggestion.from_dict(suggestion) if suggestion else None
            ),
        )


@dataclass
class CompletedModule:
    """A module as performed (or skipped) during a session."""

    module_name: str
    module_id: str | None = None
    module_type: ModuleType = ModuleType.STRENGTH
    skipped: bool = False
    completed_exercises: list[SessionExercise] = field(default_factory=list)
    notes: str | None = None
    id: str = field(default_factory=new_id)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "module_id": self.module_id,
            "module_name": self.module_name,
            "module_type": self.module_type.value,
            "skipped": self.skipped,
            "completed_exercises": [e.to_dict() for e in self.completed_exercises],
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CompletedModule":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or new_id(),
            module_id=data.get("module_id"),
            module_name=data.get("module_name", ""),
            module_type=ModuleType(data.get("module_type", "strength")),
            skipped=data.get("skipped", False),
            completed_exercises=[
                SessionExercise.from_dict(e) for e in data.get("completed_exercises", [])
            ],
            notes=data.get("notes"),
        )


@dataclass
class Session:
    """A logged workout. Immutable history once created."""

    workout_id: str
    workout_name: str
    date: datetime = field(default_factory=utc_now)
    completed_modules: list[CompletedModule] = field(default_factory=list)
    duration: int | None = None  # minutes
    overall_feeling: int | None = None  # 1-5
    notes: str | None = None
    program_id: str | None = None
    program_week: int | None = None
    started_at: datetime | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    sync_status: SyncStatus = SyncStatus.PENDING_SYNC

    @property
    def performed_exercises(self) -> list[SessionExercise]:
        """Exercises from modules that were not skipped."""
        return [
            exercise
            for module in self.completed_modules
            if not module.skipped
            for exercise in module.completed_exercises
        ]

    @property
    def total_volume(self) -> float:
        """Sum of weight x reps over completed strength sets."""
        volume = 0.0
        for exercise in self.performed_exercises:
            if exercise.exercise_type != ExerciseType.STRENGTH:
                continue
            for s in exercise.completed_sets:
                if s.weight and s.weight > 0 and s.reps:
                    volume += s.weight * s.reps
        return volume

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "workout_id": self.workout_id,
            "workout_name": self.workout_name,
            "date": format_datetime(self.date),
            "completed_modules": [m.to_dict() for m in self.completed_modules],
            "duration": self.duration,
            "overall_feeling": self.overall_feeling,
            "notes": self.notes,
            "program_id": self.program_id,
            "program_week": self.program_week,
            "started_at": format_datetime(self.started_at),
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
            "sync_status": self.sync_status.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Session":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or new_id(),
            workout_id=data.get("workout_id", ""),
            workout_name=data.get("workout_name", ""),
            date=require_datetime(data.get("date")),
            completed_modules=[
                CompletedModule.from_dict(m) for m in data.get("completed_modules", [])
            ],
            duration=data.get("duration"),
            overall_feeling=data.get("overall_feeling"),
            notes=data.get("notes"),
            program_id=data.get("program_id"),
            program_week=data.get("program_week"),
            started_at=parse_datetime(data.get("started_at")),
            created_at=require_datetime(data.get("created_at")),
            updated_at=require_datetime(data.get("updated_at")),
            sync_status=SyncStatus(data.get("sync_status", "synced")),
        )
