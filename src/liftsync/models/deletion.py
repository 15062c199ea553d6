"""Tombstones for deleted syncable entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .base import format_datetime, new_id, parse_datetime, require_datetime, utc_now


class DeletionEntityType(str, Enum):
    """Closed set of entity kinds that can be tombstoned."""

    MODULE = "module"
    WORKOUT = "workout"
    PROGRAM = "program"
    SESSION = "session"
    SCHEDULED_WORKOUT = "scheduled_workout"
    CUSTOM_EXERCISE = "custom_exercise"
    # Child grain, parent_id names the owning module or workout
    EXERCISE_INSTANCE = "exercise_instance"
    WORKOUT_EXERCISE = "workout_exercise"

    @property
    def is_child(self) -> bool:
        return self in (DeletionEntityType.EXERCISE_INSTANCE, DeletionEntityType.WORKOUT_EXERCISE)


@dataclass
class DeletionRecord:
    """A tombstone keyed by (entity_type, entity_id)."""

    entity_type: DeletionEntityType
    entity_id: str
    deleted_at: datetime = field(default_factory=utc_now)
    synced_at: datetime | None = None
    parent_id: str | None = None
    id: str = field(default_factory=new_id)

    @property
    def synced(self) -> bool:
        return self.synced_at is not None

    @property
    def key(self) -> tuple[DeletionEntityType, str]:
        return (self.entity_type, self.entity_id)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "entity_type": self.entity_type.value,
            "entity_id": self.entity_id,
            "deleted_at": format_datetime(self.deleted_at),
            "synced_at": format_datetime(self.synced_at),
            "parent_id": self.parent_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DeletionRecord":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or new_id(),
            entity_type=DeletionEntityType(data["entity_type"]),
            entity_id=data["entity_id"],
            deleted_at=require_datetime(data.get("deleted_at")),
            synced_at=parse_datetime(data.get("synced_at")),
            parent_id=data.get("parent_id"),
        )
