"""Base protocol for remote document stores."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol, runtime_checkable

from ..exceptions import LiftSyncError
from ..models.deletion import DeletionRecord
from ..models.exercises import ExerciseTemplate
from ..models.module import Module
from ..models.program import Program
from ..models.scheduled import ScheduledWorkout
from ..models.session import Session
from ..models.user_profile import UserProfile
from ..models.workout import Workout
from ..utils.logging import get_logger

logger = get_logger(__name__)

# Remote collection names
MODULES = "modules"
WORKOUTS = "workouts"
SESSIONS = "sessions"
PROGRAMS = "programs"
EXERCISES = "exercises"
SCHEDULED_WORKOUTS = "scheduled_workouts"
PROFILE = "profile"
DELETION_RECORDS = "deletion_records"

PROFILE_DOC_ID = "current"


@dataclass
class CloudSnapshot:
    """Everything the remote store holds for the signed-in user."""

    modules: list[Module] = field(default_factory=list)
    workouts: list[Workout] = field(default_factory=list)
    sessions: list[Session] = field(default_factory=list)
    programs: list[Program] = field(default_factory=list)
    exercises: list[ExerciseTemplate] = field(default_factory=list)
    scheduled_workouts: list[ScheduledWorkout] = field(default_factory=list)
    profile: UserProfile | None = None

    @property
    def entity_count(self) -> int:
        return (
            len(self.modules)
            + len(self.workouts)
            + len(self.sessions)
            + len(self.programs)
            + len(self.exercises)
            + len(self.scheduled_workouts)
        )


@runtime_checkable
class RemoteStore(Protocol):
    """Protocol for the cloud document store used as sync backend."""

    async def fetch_all_user_data(self) -> CloudSnapshot: ...

    async def save_module(self, module: Module) -> None: ...

    async def delete_module(self, module_id: str) -> None: ...

    async def save_workout(self, workout: Workout) -> None: ...

    async def delete_workout(self, workout_id: str) -> None: ...

    async def save_session(self, session: Session) -> None: ...

    async def delete_session(self, session_id: str) -> None: ...

    async def save_program(self, program: Program) -> None: ...

    async def delete_program(self, program_id: str) -> None: ...

    async def save_custom_exercise(self, exercise: ExerciseTemplate) -> None: ...

    async def delete_custom_exercise(self, exercise_id: str) -> None: ...

    async def save_scheduled_workout(self, scheduled: ScheduledWorkout) -> None: ...

    async def delete_scheduled_workout(self, scheduled_id: str) -> None: ...

    async def save_user_profile(self, profile: UserProfile) -> None: ...

    async def fetch_deletion_records(self) -> list[DeletionRecord]: ...

    async def save_deletion_records(self, records: list[DeletionRecord]) -> None: ...

    async def cleanup_old_deletion_records(self, older_than: datetime) -> int: ...


def _decode_all(collection: str, docs: list[dict], loader) -> list:
    """Decode documents, skipping ones that fail validation."""
    entities = []
    for doc in docs:
        try:
            entities.append(loader(doc))
        except (LiftSyncError, KeyError, TypeError, ValueError) as e:
            logger.warning(
                "skipping invalid remote document",
                collection=collection,
                doc_id=doc.get("id") if isinstance(doc, dict) else None,
                error=str(e),
            )
    return entities


class BaseRemoteStore(ABC):
    """Document-store client built on three storage primitives.

    Subclasses provide ``_list``, ``_put`` and ``_remove`` over
    named collections of JSON-compatible dicts; the typed save/delete/fetch
    surface is shared. ``_guard`` runs before every public call and may raise
    ``RemoteUnavailable``.
    """

    @abstractmethod
    async def _list(self, collection: str) -> list[dict]:
        pass

    @abstractmethod
    async def _put(self, collection: str, doc_id: str, doc: dict) -> None:
        pass

    @abstractmethod
    async def _remove(self, collection: str, doc_id: str) -> bool:
        pass

    async def _guard(self, operation: str) -> None:
        """Hook run before each remote operation."""

    async def fetch_all_user_data(self) -> CloudSnapshot:
        """Fetch every collection into a snapshot."""
        await self._guard("fetch")
        profiles = _decode_all(PROFILE, await self._list(PROFILE), UserProfile.from_dict)
        snapshot = CloudSnapshot(
            modules=_decode_all(MODULES, await self._list(MODULES), Module.from_dict),
            workouts=_decode_all(WORKOUTS, await self._list(WORKOUTS), Workout.from_dict),
            sessions=_decode_all(SESSIONS, await self._list(SESSIONS), Session.from_dict),
            programs=_decode_all(PROGRAMS, await self._list(PROGRAMS), Program.from_dict),
            exercises=_decode_all(
                EXERCISES, await self._list(EXERCISES), ExerciseTemplate.from_dict
            ),
            scheduled_workouts=_decode_all(
                SCHEDULED_WORKOUTS,
                await self._list(SCHEDULED_WORKOUTS),
                ScheduledWorkout.from_dict,
            ),
            profile=profiles[0] if profiles else None,
        )
        logger.debug("fetched remote snapshot", entities=snapshot.entity_count)
        return snapshot

    async def save_module(self, module: Module) -> None:
        await self._guard("save_module")
        await self._put(MODULES, module.id, module.to_dict())

    async def delete_module(self, module_id: str) -> None:
        await self._guard("delete_module")
        await self._remove(MODULES, module_id)

    async def save_workout(self, workout: Workout) -> None:
        await self._guard("save_workout")
        await self._put(WORKOUTS, workout.id, workout.to_dict())

    async def delete_workout(self, workout_id: str) -> None:
        await self._guard("delete_workout")
        await self._remove(WORKOUTS, workout_id)

    async def save_session(self, session: Session) -> None:
        await self._guard("save_session")
        await self._put(SESSIONS, session.id, session.to_dict())

    async def delete_session(self, session_id: str) -> None:
        await self._guard("delete_session")
        await self._remove(SESSIONS, session_id)

    async def save_program(self, program: Program) -> None:
        await self._guard("save_program")
        await self._put(PROGRAMS, program.id, program.to_dict())

    async def delete_program(self, program_id: str) -> None:
        await self._guard("delete_program")
        await self._remove(PROGRAMS, program_id)

    async def save_custom_exercise(self, exercise: ExerciseTemplate) -> None:
        await self._guard("save_custom_exercise")
        await self._put(EXERCISES, exercise.id, exercise.to_dict())

    async def delete_custom_exercise(self, exercise_id: str) -> None:
        await self._guard("delete_custom_exercise")
        await self._remove(EXERCISES, exercise_id)

    async def save_scheduled_workout(self, scheduled: ScheduledWorkout) -> None:
        await self._guard("save_scheduled_workout")
        await self._put(SCHEDULED_WORKOUTS, scheduled.id, scheduled.to_dict())

    async def delete_scheduled_workout(self, scheduled_id: str) -> None:
        await self._guard("delete_scheduled_workout")
        await self._remove(SCHEDULED_WORKOUTS, scheduled_id)

    async def save_user_profile(self, profile: UserProfile) -> None:
        await self._guard("save_user_profile")
        await self._put(PROFILE, PROFILE_DOC_ID, profile.to_dict())

    async def fetch_deletion_records(self) -> list[DeletionRecord]:
        await self._guard("fetch_deletions")
        docs = await self._list(DELETION_RECORDS)
        return _decode_all(DELETION_RECORDS, docs, DeletionRecord.from_dict)

    async def save_deletion_records(self, records: list[DeletionRecord]) -> None:
        """Upsert tombstones, one document per (entity_type, entity_id)."""
        await self._guard("save_deletions")
        for record in records:
            await self._put(DELETION_RECORDS, _deletion_doc_id(record), record.to_dict())

    async def cleanup_old_deletion_records(self, older_than: datetime) -> int:
        """Remove remote tombstones deleted before ``older_than``."""
        await self._guard("cleanup_deletions")
        removed = 0
        for record in await self.fetch_deletion_records():
            if record.deleted_at < older_than:
                if await self._remove(DELETION_RECORDS, _deletion_doc_id(record)):
                    removed += 1
        return removed


def _deletion_doc_id(record: DeletionRecord) -> str:
    return f"{record.entity_type.value}_{record.entity_id}"
