"""Calendar entries for planned workouts."""

from dataclasses import dataclass, field
from datetime import datetime

from .base import SyncStatus, format_datetime, new_id, require_datetime, utc_now


@dataclass
class ScheduledWorkout:
    """A workout planned for a date, optionally linked to the session that completed it."""

    workout_id: str
    workout_name: str
    scheduled_date: datetime
    completed_session_id: str | None = None
    program_id: str | None = None
    notes: str | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    sync_status: SyncStatus = SyncStatus.PENDING_SYNC

    @property
    def is_completed(self) -> bool:
        return self.completed_session_id is not None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "workout_id": self.workout_id,
            "workout_name": self.workout_name,
            "scheduled_date": format_datetime(self.scheduled_date),
            "completed_session_id": self.completed_session_id,
            "program_id": self.program_id,
            "notes": self.notes,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
            "sync_status": self.sync_status.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ScheduledWorkout":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or new_id(),
            workout_id=data.get("workout_id", ""),
            workout_name=data.get("workout_name", ""),
            scheduled_date=require_datetime(data.get("scheduled_date")),
            completed_session_id=data.get("completed_session_id"),
            program_id=data.get("program_id"),
            notes=data.get("notes"),
            created_at=require_datetime(data.get("created_at")),
            updated_at=require_datetime(data.get("updated_at")),
            sync_status=SyncStatus(data.get("sync_status", "synced")),
        )
