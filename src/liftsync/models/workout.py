"""Workout templates built from module references and standalone exercises."""

from dataclasses import dataclass, field
from datetime import datetime

from .base import SyncStatus, format_datetime, new_id, require_datetime, utc_now
from .exercises import ExerciseInstance


@dataclass
class ModuleReference:
    """Weak reference from a workout to a module, with its position."""

    module_id: str
    order: int = 0
    is_required: bool = True
    notes: str | None = None
    id: str = field(default_factory=new_id)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "module_id": self.module_id,
            "order": self.order,
            "is_required": self.is_required,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ModuleReference":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or new_id(),
            module_id=data["module_id"],
            order=data.get("order", 0),
            is_required=data.get("is_required", True),
            notes=data.get("notes"),
        )


@dataclass
class WorkoutExercise:
    """An exercise placed directly in a workout, outside any module."""

    exercise: ExerciseInstance
    order: int = 0
    notes: str | None = None
    id: str = field(default_factory=new_id)

    @property
    def updated_at(self) -> datetime:
        return self.exercise.updated_at

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "exercise": self.exercise.to_dict(),
            "order": self.order,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WorkoutExercise":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or new_id(),
            exercise=ExerciseInstance.from_dict(data["exercise"]),
            order=data.get("order", 0),
            notes=data.get("notes"),
        )


@dataclass
class Workout:
    """A workout template: ordered modules plus optional standalone exercises."""

    name: str
    module_references: list[ModuleReference] = field(default_factory=list)
    standalone_exercises: list[WorkoutExercise] = field(default_factory=list)
    notes: str | None = None
    estimated_duration: int | None = None  # minutes
    archived: bool = False
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    sync_status: SyncStatus = SyncStatus.PENDING_SYNC

    def _touch(self) -> None:
        self.updated_at = utc_now()
        self.sync_status = SyncStatus.PENDING_SYNC

    @property
    def module_ids(self) -> list[str]:
        return [ref.module_id for ref in sorted(self.module_references, key=lambda r: r.order)]

    def add_module(self, module_id: str, is_required: bool = True) -> ModuleReference:
        """Reference a module at the end of the workout."""
        ref = ModuleReference(
            module_id=module_id,
            order=len(self.module_references),
            is_required=is_required,
        )
        self.module_references.append(ref)
        self._touch()
        return ref

    def remove_module(self, module_id: str) -> None:
        """Drop every reference to a module and reindex the rest."""
        remaining = [
            ref
            for ref in sorted(self.module_references, key=lambda r: r.order)
            if ref.module_id != module_id
        ]
        for index, ref in enumerate(remaining):
            ref.order = index
        self.module_references = remaining
        self._touch()

    def add_standalone_exercise(self, exercise: ExerciseInstance) -> WorkoutExercise:
        """Add an exercise that is not routed through a module."""
        entry = WorkoutExercise(exercise=exercise, order=len(self.standalone_exercises))
        self.standalone_exercises.append(entry)
        self._touch()
        return entry

    def remove_standalone_exercise(self, entry_id: str) -> WorkoutExercise | None:
        """Remove a standalone exercise and reindex the rest."""
        removed = next((e for e in self.standalone_exercises if e.id == entry_id), None)
        if removed is None:
            return None
        remaining = sorted(
            (e for e in self.standalone_exercises if e.id != entry_id),
            key=lambda e: e.order,
        )
        for index, entry in enumerate(remaining):
            entry.order = index
        self.standalone_exercises = remaining
        self._touch()
        return removed

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "module_references": [r.to_dict() for r in self.module_references],
            "standalone_exercises": [e.to_dict() for e in self.standalone_exercises],
            "notes": self.notes,
            "estimated_duration": self.estimated_duration,
            "archived": self.archived,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
            "sync_status": self.sync_status.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Workout":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or new_id(),
            name=data.get("name", ""),
            module_references=[
                ModuleReference.from_dict(r) for r in data.get("module_references", [])
            ],
            standalone_exercises=[
                WorkoutExercise.from_dict(e) for e in data.get("standalone_exercises", [])
            ],
            notes=data.get("notes"),
            estimated_duration=data.get("estimated_duration"),
            archived=data.get("archived", False),
            created_at=require_datetime(data.get("created_at")),
            updated_at=require_datetime(data.get("updated_at")),
            sync_status=SyncStatus(data.get("sync_status", "synced")),
        )
