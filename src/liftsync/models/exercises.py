"""Exercise prescription models shared by modules and workouts."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ..exceptions import ValidationError
from .base import format_datetime, new_id, require_datetime, utc_now


class ExerciseType(str, Enum):
    """Kind of exercise, drives which metrics are tracked."""

    STRENGTH = "strength"
    CARDIO = "cardio"
    MOBILITY = "mobility"
    ISOMETRIC = "isometric"
    EXPLOSIVE = "explosive"
    RECOVERY = "recovery"


class MetricType(str, Enum):
    """Per-set metrics an exercise can log."""

    WEIGHT = "weight"
    REPS = "reps"
    DURATION = "duration"
    DISTANCE = "distance"
    PACE = "pace"
    HEART_RATE = "heart_rate"
    HOLD_TIME = "hold_time"
    HEIGHT = "height"
    RPE = "rpe"


DEFAULT_METRICS = {
    ExerciseType.STRENGTH: [MetricType.WEIGHT, MetricType.REPS],
    ExerciseType.CARDIO: [MetricType.DURATION, MetricType.DISTANCE],
    ExerciseType.MOBILITY: [MetricType.REPS],
    ExerciseType.ISOMETRIC: [MetricType.HOLD_TIME],
    ExerciseType.EXPLOSIVE: [MetricType.REPS, MetricType.HEIGHT],
    ExerciseType.RECOVERY: [MetricType.DURATION],
}


@dataclass
class SetGroup:
    """A group of sets sharing one prescription."""

    sets: int
    target_reps: int | None = None
    target_weight: float | None = None  # 0 is a legitimate bodyweight target in memory
    target_rpe: int | None = None
    target_duration: int | None = None  # seconds
    target_distance: float | None = None
    target_hold_time: int | None = None  # seconds
    rest_period: int | None = None  # seconds between sets
    notes: str | None = None
    id: str = field(default_factory=new_id)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "sets": self.sets,
            "target_reps": self.target_reps,
            "target_weight": self.target_weight,
            "target_rpe": self.target_rpe,
            "target_duration": self.target_duration,
            "target_distance": self.target_distance,
            "target_hold_time": self.target_hold_time,
            "rest_period": self.rest_period,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SetGroup":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or new_id(),
            sets=data.get("sets", 1),
            target_reps=data.get("target_reps"),
            target_weight=data.get("target_weight"),
            target_rpe=data.get("target_rpe"),
            target_duration=data.get("target_duration"),
            target_distance=data.get("target_distance"),
            target_hold_time=data.get("target_hold_time"),
            rest_period=data.get("rest_period"),
            notes=data.get("notes"),
        )

    @property
    def formatted_target(self) -> str:
        """Short prescription label such as '3x8 @ 100'."""
        if self.target_reps is not None:
            label = f"{self.sets}x{self.target_reps}"
        elif self.target_duration is not None:
            label = f"{self.sets}x{self.target_duration}s"
        elif self.target_hold_time is not None:
            label = f"{self.sets}x{self.target_hold_time}s hold"
        else:
            label = f"{self.sets} sets"
        if self.target_weight:
            label += f" @ {self.target_weight:g}"
        return label


@dataclass
class ExerciseInstance:
    """An exercise placed inside a module or workout.

    The name, type and metrics either come from the referenced template in
    the exercise library (``template_id``) or are set directly on the
    instance. ``order`` is the explicit position within the parent.
    """

    name: str = ""
    exercise_type: ExerciseType = ExerciseType.STRENGTH
    template_id: str | None = None  # weak reference into the exercise library
    set_groups: list[SetGroup] = field(default_factory=list)
    metrics: list[MetricType] = field(default_factory=list)
    superset_group_id: str | None = None
    order: int = 0
    notes: str | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        if not self.template_id and not self.name.strip():
            raise ValidationError("name", "exercise needs a name or a template reference")
        if self.order < 0:
            raise ValidationError("order", f"must be non-negative, got {self.order}")

    @property
    def effective_metrics(self) -> list[MetricType]:
        """Metrics tracked for this instance, defaulting by exercise type."""
        return self.metrics or DEFAULT_METRICS.get(self.exercise_type, [])

    def touch(self) -> None:
        """Mark the instance as edited now."""
        self.updated_at = utc_now()

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "template_id": self.template_id,
            "name": self.name,
            "exercise_type": self.exercise_type.value,
            "metrics": [m.value for m in self.metrics],
            "set_groups": [sg.to_dict() for sg in self.set_groups],
            "superset_group_id": self.superset_group_id,
            "order": self.order,
            "notes": self.notes,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExerciseInstance":
        """Create from dictionary.

        A document without an id gets a fresh one, so it is always treated
        as a new child on merge.
        """
        return cls(
            id=data.get("id") or new_id(),
            template_id=data.get("template_id"),
            name=data.get("name", ""),
            exercise_type=ExerciseType(data.get("exercise_type", "strength")),
            metrics=[MetricType(m) for m in data.get("metrics", [])],
            set_groups=[SetGroup.from_dict(sg) for sg in data.get("set_groups", [])],
            superset_group_id=data.get("superset_group_id"),
            order=data.get("order", 0),
            notes=data.get("notes"),
            created_at=require_datetime(data.get("created_at")),
            updated_at=require_datetime(data.get("updated_at")),
        )


@dataclass
class ExerciseTemplate:
    """A custom entry in the user's exercise library."""

    name: str
    exercise_type: ExerciseType = ExerciseType.STRENGTH
    primary_muscles: list[str] = field(default_factory=list)
    is_custom: bool = True
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        if not self.name.strip():
            raise ValidationError("name", "exercise template name cannot be empty")

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "exercise_type": self.exercise_type.value,
            "primary_muscles": self.primary_muscles,
            "is_custom": self.is_custom,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExerciseTemplate":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or new_id(),
            name=data["name"],
            exercise_type=ExerciseType(data.get("exercise_type", "strength")),
            primary_muscles=data.get("primary_muscles", []),
            is_custom=data.get("is_custom", True),
            created_at=require_datetime(data.get("created_at")),
            updated_at=require_datetime(data.get("updated_at")),
        )
