"""Training programs and their progression configuration."""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum

from ..exceptions import ValidationError
from .base import SyncStatus, format_datetime, new_id, parse_datetime, require_datetime, utc_now


class ProgressionMetric(str, Enum):
    """Which value a progression rule moves."""

    WEIGHT = "weight"
    REPS = "reps"


class ProgressionStrategy(str, Enum):
    """How a rule decides when to move the metric."""

    LINEAR = "linear"  # increase every session
    DOUBLE_PROGRESSION = "double_progression"  # reps up to target first, then weight


class ProgressionPolicy(str, Enum):
    """Program-wide progression behaviour."""

    FIXED = "fixed"
    ADAPTIVE = "adaptive"


class ProgressionRecommendation(str, Enum):
    """Outcome label for one exercise in one session."""

    PROGRESS = "progress"
    STAY = "stay"
    REGRESS = "regress"


class RulePreset(str, Enum):
    """Named starting points for progression rules."""

    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"
    FINE_GRAINED = "fine_grained"
    REP_PROGRESSION = "rep_progression"


# (metric, percentage_increase, rounding_increment, minimum_increase)
_PRESETS = {
    RulePreset.CONSERVATIVE: (ProgressionMetric.WEIGHT, 2.5, 5.0, 5.0),
    RulePreset.MODERATE: (ProgressionMetric.WEIGHT, 5.0, 5.0, 5.0),
    RulePreset.AGGRESSIVE: (ProgressionMetric.WEIGHT, 7.5, 5.0, 5.0),
    RulePreset.FINE_GRAINED: (ProgressionMetric.WEIGHT, 2.5, 2.5, 2.5),
    RulePreset.REP_PROGRESSION: (ProgressionMetric.REPS, 5.0, 1.0, 1.0),
}


@dataclass
class ProgressionRule:
    """Percentage-based increase rule with rounding and a minimum step."""

    target_metric: ProgressionMetric = ProgressionMetric.WEIGHT
    strategy: ProgressionStrategy = ProgressionStrategy.LINEAR
    percentage_increase: float = 2.5
    rounding_increment: float = 5.0
    minimum_increase: float | None = 5.0
    id: str = field(default_factory=new_id)

    def __post_init__(self):
        if self.rounding_increment <= 0:
            raise ValidationError("rounding_increment", "must be positive")
        if self.percentage_increase < 0:
            raise ValidationError("percentage_increase", "must not be negative")

    @classmethod
    def from_preset(
        cls,
        preset: RulePreset,
        strategy: ProgressionStrategy = ProgressionStrategy.LINEAR,
    ) -> "ProgressionRule":
        """Build a fresh rule from a named preset."""
        metric, percentage, rounding, minimum = _PRESETS[RulePreset(preset)]
        return cls(
            target_metric=metric,
            strategy=strategy,
            percentage_increase=percentage,
            rounding_increment=rounding,
            minimum_increase=minimum,
        )

    @property
    def display_name(self) -> str:
        unit = "reps" if self.target_metric == ProgressionMetric.REPS else "weight"
        return f"+{self.percentage_increase:g}% {unit}, round to {self.rounding_increment:g}"

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "target_metric": self.target_metric.value,
            "strategy": self.strategy.value,
            "percentage_increase": self.percentage_increase,
            "rounding_increment": self.rounding_increment,
            "minimum_increase": self.minimum_increase,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProgressionRule":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or new_id(),
            target_metric=ProgressionMetric(data.get("target_metric", "weight")),
            strategy=ProgressionStrategy(data.get("strategy", "linear")),
            percentage_increase=data.get("percentage_increase", 2.5),
            rounding_increment=data.get("rounding_increment", 5.0),
            minimum_increase=data.get("minimum_increase", 5.0),
        )


@dataclass
class ProgressionSuggestion:
    """Suggested next value for one exercise, persisted on the session exercise."""

    base_value: float
    suggested_value: float
    metric: ProgressionMetric = ProgressionMetric.WEIGHT
    percentage_applied: float = 0.0
    applied_outcome: ProgressionRecommendation | None = None
    is_outcome_adjusted: bool = False
    decision_code: str | None = None
    confidence: float | None = None
    calculated_at: datetime = field(default_factory=utc_now)

    @property
    def delta(self) -> float:
        return self.suggested_value - self.base_value

    @property
    def formatted_suggestion(self) -> str:
        unit = " reps" if self.metric == ProgressionMetric.REPS else ""
        return f"{self.base_value:g} -> {self.suggested_value:g}{unit}"

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "base_value": self.base_value,
            "suggested_value": self.suggested_value,
            "metric": self.metric.value,
            "percentage_applied": self.percentage_applied,
            "applied_outcome": self.applied_outcome.value if self.applied_outcome else None,
            "is_outcome_adjusted": self.is_outcome_adjusted,
            "decision_code": self.decision_code,
            "confidence": self.confidence,
            "calculated_at": format_datetime(self.calculated_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProgressionSuggestion":
        """Create from dictionary."""
        outcome = data.get("applied_outcome")
        return cls(
            base_value=data["base_value"],
            suggested_value=data["suggested_value"],
            metric=ProgressionMetric(data.get("metric", "weight")),
            percentage_applied=data.get("percentage_applied", 0.0),
            applied_outcome=ProgressionRecommendation(outcome) if outcome else None,
            is_outcome_adjusted=data.get("is_outcome_adjusted", False),
            decision_code=data.get("decision_code"),
            confidence=data.get("confidence"),
            calculated_at=require_datetime(data.get("calculated_at")),
        )


@dataclass
class ExerciseProgressionState:
    """Adaptive state for one exercise instance inside a program."""

    success_streak: int = 0
    fail_streak: int = 0
    confidence: float = 0.5
    recent_outcomes: list[ProgressionRecommendation] = field(default_factory=list)  # newest first
    last_prescribed_weight: float | None = None
    last_prescribed_reps: int | None = None
    last_updated_at: datetime | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "success_streak": self.success_streak,
            "fail_streak": self.fail_streak,
            "confidence": self.confidence,
            "recent_outcomes": [o.value for o in self.recent_outcomes],
            "last_prescribed_weight": self.last_prescribed_weight,
            "last_prescribed_reps": self.last_prescribed_reps,
            "last_updated_at": format_datetime(self.last_updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExerciseProgressionState":
        """Create from dictionary."""
        return cls(
            success_streak=data.get("success_streak", 0),
            fail_streak=data.get("fail_streak", 0),
            confidence=data.get("confidence", 0.5),
            recent_outcomes=[ProgressionRecommendation(o) for o in data.get("recent_outcomes", [])],
            last_prescribed_weight=data.get("last_prescribed_weight"),
            last_prescribed_reps=data.get("last_prescribed_reps"),
            last_updated_at=parse_datetime(data.get("last_updated_at")),
        )


class ScheduleType(str, Enum):
    """How a program slot is placed on the calendar."""

    WEEKLY = "weekly"  # every week on day_of_week
    SPECIFIC_WEEK = "specific_week"  # day_of_week in week_number only
    SPECIFIC_DATE = "specific_date"  # start_date + specific_date_offset days


@dataclass
class ProgramWorkoutSlot:
    """A workout placed in a program's schedule.

    ``day_of_week`` follows ``date.weekday()`` (0 is Monday); ``week_number``
    is 1-based from the program start.
    """

    workout_id: str
    workout_name: str = ""
    schedule_type: ScheduleType = ScheduleType.WEEKLY
    day_of_week: int | None = None
    week_number: int | None = None
    specific_date_offset: int | None = None
    order: int = 0
    notes: str | None = None
    id: str = field(default_factory=new_id)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "workout_id": self.workout_id,
            "workout_name": self.workout_name,
            "schedule_type": self.schedule_type.value,
            "day_of_week": self.day_of_week,
            "week_number": self.week_number,
            "specific_date_offset": self.specific_date_offset,
            "order": self.order,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProgramWorkoutSlot":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or new_id(),
            workout_id=data["workout_id"],
            workout_name=data.get("workout_name", ""),
            schedule_type=ScheduleType(data.get("schedule_type", "weekly")),
            day_of_week=data.get("day_of_week"),
            week_number=data.get("week_number"),
            specific_date_offset=data.get("specific_date_offset"),
            order=data.get("order", 0),
            notes=data.get("notes"),
        )


@dataclass
class Program:
    """A multi-week schedule of workouts with progression settings."""

    name: str
    description: str | None = None
    duration_weeks: int = 4
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_active: bool = False
    workout_slots: list[ProgramWorkoutSlot] = field(default_factory=list)
    progression_enabled: bool = False
    progression_policy: ProgressionPolicy = ProgressionPolicy.FIXED
    default_progression_rule: ProgressionRule | None = None
    exercise_progression_overrides: dict[str, ProgressionRule] = field(default_factory=dict)
    progression_enabled_exercises: set[str] = field(default_factory=set)
    exercise_progression_states: dict[str, ExerciseProgressionState] = field(default_factory=dict)
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    sync_status: SyncStatus = SyncStatus.PENDING_SYNC

    def _touch(self) -> None:
        self.updated_at = utc_now()
        self.sync_status = SyncStatus.PENDING_SYNC

    @property
    def computed_end_date(self) -> datetime | None:
        """Explicit end date, else start + duration_weeks."""
        if self.end_date:
            return self.end_date
        if self.start_date is None:
            return None
        return self.start_date + timedelta(weeks=self.duration_weeks)

    def progression_rule_for(self, instance_id: str) -> ProgressionRule | None:
        """Rule for an exercise instance: its override, else the default."""
        return self.exercise_progression_overrides.get(instance_id) or self.default_progression_rule

    def is_progression_enabled_for(self, instance_id: str) -> bool:
        return self.progression_enabled and instance_id in self.progression_enabled_exercises

    def set_progression_enabled(self, instance_id: str, enabled: bool) -> None:
        if enabled:
            self.progression_enabled_exercises.add(instance_id)
        else:
            self.progression_enabled_exercises.discard(instance_id)
        self._touch()

    def set_progression_override(self, instance_id: str, rule: ProgressionRule | None) -> None:
        """Set or clear the per-exercise rule override."""
        if rule is None:
            self.exercise_progression_overrides.pop(instance_id, None)
        else:
            self.exercise_progression_overrides[instance_id] = rule
        self._touch()

    def progression_state_for(self, instance_id: str) -> ExerciseProgressionState:
        return self.exercise_progression_states.get(instance_id) or ExerciseProgressionState()

    def set_progression_state(self, instance_id: str, state: ExerciseProgressionState) -> None:
        self.exercise_progression_states[instance_id] = state
        self._touch()

    def add_slot(self, slot: ProgramWorkoutSlot) -> None:
        slot.order = len(self.workout_slots)
        self.workout_slots.append(slot)
        self._touch()

    def slots_for(self, day_of_week: int, week_number: int | None = None) -> list[ProgramWorkoutSlot]:
        """Weekly slots on a weekday, plus week-specific ones when a week is given."""
        matches = []
        for slot in self.workout_slots:
            if slot.day_of_week != day_of_week:
                continue
            if slot.schedule_type == ScheduleType.WEEKLY:
                matches.append(slot)
            elif slot.schedule_type == ScheduleType.SPECIFIC_WEEK and week_number is not None:
                if slot.week_number == week_number:
                    matches.append(slot)
        return sorted(matches, key=lambda s: s.order)

    def slots_on(self, day: date) -> list[ProgramWorkoutSlot]:
        """All slots falling on a calendar date, requiring a start date."""
        if self.start_date is None:
            return []
        offset = (day - self.start_date.date()).days
        if offset < 0 or offset >= self.duration_weeks * 7:
            return []
        matches = self.slots_for(day.weekday(), offset // 7 + 1)
        matches += [
            slot
            for slot in self.workout_slots
            if slot.schedule_type == ScheduleType.SPECIFIC_DATE
            and slot.specific_date_offset == offset
        ]
        return sorted(matches, key=lambda s: s.order)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "duration_weeks": self.duration_weeks,
            "start_date": format_datetime(self.start_date),
            "end_date": format_datetime(self.end_date),
            "is_active": self.is_active,
            "workout_slots": [s.to_dict() for s in self.workout_slots],
            "progression_enabled": self.progression_enabled,
            "progression_policy": self.progression_policy.value,
            "default_progression_rule": (
                self.default_progression_rule.to_dict() if self.default_progression_rule else None
            ),
            "exercise_progression_overrides": {
                k: v.to_dict() for k, v in self.exercise_progression_overrides.items()
            },
            "progression_enabled_exercises": sorted(self.progression_enabled_exercises),
            "exercise_progression_states": {
                k: v.to_dict() for k, v in self.exercise_progression_states.items()
            },
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
            "sync_status": self.sync_status.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Program":
        """Create from dictionary."""
        rule = data.get("default_progression_rule")
        return cls(
            id=data.get("id") or new_id(),
            name=data.get("name", ""),
            description=data.get("description"),
            duration_weeks=data.get("duration_weeks", 4),
            start_date=parse_datetime(data.get("start_date")),
            end_date=parse_datetime(data.get("end_date")),
            is_active=data.get("is_active", False),
            workout_slots=[ProgramWorkoutSlot.from_dict(s) for s in data.get("workout_slots", [])],
            progression_enabled=data.get("progression_enabled", False),
            progression_policy=ProgressionPolicy(data.get("progression_policy", "fixed")),
            default_progression_rule=ProgressionRule.from_dict(rule) if rule else None,
            exercise_progression_overrides={
                k: ProgressionRule.from_dict(v)
                for k, v in data.get("exercise_progression_overrides", {}).items()
            },
            progression_enabled_exercises=set(data.get("progression_enabled_exercises", [])),
            exercise_progression_states={
                k: ExerciseProgressionState.from_dict(v)
                for k, v in data.get("exercise_progression_states", {}).items()
            },
            created_at=require_datetime(data.get("created_at")),
            updated_at=require_datetime(data.get("updated_at")),
            sync_status=SyncStatus(data.get("sync_status", "synced")),
        )
