"""Pull, merge and push cycles between the local store and the remote store."""

import asyncio
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from ..clients.base import CloudSnapshot, RemoteStore
from ..config import Settings
from ..exceptions import LiftSyncError
from ..models.base import SyncStatus, format_datetime, utc_now
from ..models.deletion import DeletionEntityType, DeletionRecord
from ..utils.logging import get_logger
from . import events as ev
from .deletion_tracker import DeletionTracker
from .events import EventBus
from .local_store import LocalStore
from .merge import merge_modules, merge_workouts, needs_sync

logger = get_logger(__name__)


class SyncState(str, Enum):
    IDLE = "idle"
    PULLING_DELETIONS = "pulling_deletions"
    FETCHING = "fetching"
    PUSHING_DELETIONS = "pushing_deletions"
    MERGING = "merging"
    RELOADING = "reloading"
    PUSHING = "pushing"
    FAILED = "failed"


@dataclass
class CollectionStats:
    """Per-collection counters for one cycle."""

    saved: int = 0
    skipped_deleted: int = 0
    unchanged: int = 0
    pushed: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return {
            "saved": self.saved,
            "skipped_deleted": self.skipped_deleted,
            "unchanged": self.unchanged,
            "pushed": self.pushed,
            "failed": self.failed,
        }


@dataclass
class SyncReport:
    """Outcome of one sync cycle.

    ``error`` is set when the cycle aborted (remote fetch failed);
    ``errors`` collects step failures that were logged and skipped.
    """

    direction: str
    state: SyncState = SyncState.IDLE
    collections: dict[str, CollectionStats] = field(
        default_factory=lambda: defaultdict(CollectionStats)
    )
    deletions_imported: int = 0
    deletions_applied: int = 0
    deletions_pushed: int = 0
    local_tombstones_cleaned: int = 0
    remote_tombstones_cleaned: int = 0
    errors: list[str] = field(default_factory=list)
    error: str | None = None
    started_at: datetime = field(default_factory=utc_now)
    finished_at: datetime | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def stats(self, collection: str) -> CollectionStats:
        return self.collections[collection]

    def to_dict(self) -> dict:
        return {
            "direction": self.direction,
            "state": self.state.value,
            "succeeded": self.succeeded,
            "collections": {k: v.to_dict() for k, v in self.collections.items()},
            "deletions_imported": self.deletions_imported,
            "deletions_applied": self.deletions_applied,
            "deletions_pushed": self.deletions_pushed,
            "local_tombstones_cleaned": self.local_tombstones_cleaned,
            "remote_tombstones_cleaned": self.remote_tombstones_cleaned,
            "errors": self.errors,
            "error": self.error,
            "started_at": format_datetime(self.started_at),
            "finished_at": format_datetime(self.finished_at),
        }


class SyncOrchestrator:
    """Drives sync cycles for one local store against one remote store.

    Cycles are serialised by a lock: a caller that arrives while a cycle is
    running waits for it to finish and then runs its own.
    """

    def __init__(
        self,
        local: LocalStore,
        remote: RemoteStore,
        tracker: DeletionTracker,
        events: EventBus | None = None,
        settings: Settings | None = None,
    ):
        self.local = local
        self.remote = remote
        self.tracker = tracker
        self.events = events or EventBus()
        self.retention_days = settings.deletion_retention_days if settings else 30

        self.state = SyncState.IDLE
        self.last_sync_at: datetime | None = None
        self.last_error: str | None = None
        self.last_report: SyncReport | None = None
        self._lock = asyncio.Lock()

    @property
    def is_syncing(self) -> bool:
        return self._lock.locked()

    def status(self) -> dict:
        """Snapshot of sync status for display."""
        return {
            "state": self.state.value,
            "is_syncing": self.is_syncing,
            "last_sync_at": format_datetime(self.last_sync_at),
            "last_error": self.last_error,
            "last_report": self.last_report.to_dict() if self.last_report else None,
        }

    async def sync_from_cloud(self) -> SyncReport:
        """Pull remote changes and merge them into the local store."""
        async with self._lock:
            report = SyncReport("pull")
            try:
                await self._pull(report)
            except Exception as e:
                self._abort(report, e)
                raise
            finally:
                self._finish(report)
            return report

    async def push_all_to_cloud(self) -> SyncReport:
        """Push pending deletions, then every local entity."""
        async with self._lock:
            report = SyncReport("push")
            try:
                await self._push(report)
            except Exception as e:
                self._abort(report, e)
                raise
            finally:
                self._finish(report)
            return report

    async def sync_all(self) -> SyncReport:
        """Full cycle: pull and merge, then push."""
        async with self._lock:
            report = SyncReport("all")
            try:
                await self._pull(report)
                if report.succeeded:
                    await self._push(report)
            except Exception as e:
                self._abort(report, e)
                raise
            finally:
                self._finish(report)
            return report

    def _set_state(self, report: SyncReport, state: SyncState) -> None:
        self.state = state
        report.state = state

    def _abort(self, report: SyncReport, error: Exception) -> None:
        logger.exception("sync cycle crashed", context=f"sync_{report.direction}")
        report.error = f"{type(error).__name__}: {error}"
        self._set_state(report, SyncState.FAILED)

    def _finish(self, report: SyncReport) -> None:
        report.finished_at = utc_now()
        if report.state != SyncState.FAILED:
            report.state = SyncState.IDLE
        self.state = SyncState.IDLE
        self.last_report = report
        if report.succeeded:
            self.last_sync_at = report.finished_at
            self.last_error = report.errors[-1] if report.errors else None
        else:
            self.last_error = report.error
        logger.info(
            "sync cycle finished",
            context=f"sync_{report.direction}",
            succeeded=report.succeeded,
            errors=len(report.errors),
        )

    def _record_error(self, report: SyncReport, context: str, error: Exception) -> None:
        logger.error("sync step failed", context=context, error=str(error))
        report.errors.append(f"{context}: {error}")

    # Pull

    async def _pull(self, report: SyncReport) -> None:
        logger.info("starting sync from cloud", context="sync_from_cloud")

        self._set_state(report, SyncState.PULLING_DELETIONS)
        await self._pull_deletions(report)

        self._set_state(report, SyncState.FETCHING)
        try:
            pending_ids = await self._pending_deletion_ids()
            snapshot = await self.remote.fetch_all_user_data()
        except LiftSyncError as e:
            logger.error("fetch failed, aborting cycle", context="sync_from_cloud", error=str(e))
            report.error = str(e)
            self._set_state(report, SyncState.FAILED)
            return

        self._set_state(report, SyncState.PUSHING_DELETIONS)
        await self._push_deletions(report)

        self._set_state(report, SyncState.MERGING)
        await self._merge_modules(snapshot, pending_ids, report)
        await self._merge_workouts(snapshot, pending_ids, report)
        await self._merge_sessions(snapshot, report)
        await self._merge_exercises(snapshot, report)
        await self._merge_programs(snapshot, pending_ids, report)

        await self.events.publish(
            ev.SCHEDULED_WORKOUTS_SYNCED_FROM_CLOUD, snapshot.scheduled_workouts
        )
        if snapshot.profile is not None:
            await self.events.publish(ev.USER_PROFILE_SYNCED_FROM_CLOUD, snapshot.profile)

        self._set_state(report, SyncState.RELOADING)
        try:
            await self.local.reload()
            report.local_tombstones_cleaned = await self.tracker.cleanup_old_records()
        except LiftSyncError as e:
            self._record_error(report, "reload", e)
        try:
            cutoff = utc_now() - timedelta(days=self.retention_days)
            report.remote_tombstones_cleaned = await self.remote.cleanup_old_deletion_records(
                cutoff
            )
        except LiftSyncError as e:
            self._record_error(report, "cleanup_remote_deletions", e)

    async def _pending_deletion_ids(self) -> dict[DeletionEntityType, set[str]]:
        """Local deletions not yet acknowledged by the remote, by type.

        Captured before the fetch: the snapshot may still contain entities
        this cycle is about to delete remotely.
        """
        pending: dict[DeletionEntityType, set[str]] = defaultdict(set)
        for record in await self.tracker.get_unsynced_deletions():
            pending[record.entity_type].add(record.entity_id)
        return pending

    async def _pull_deletions(self, report: SyncReport) -> None:
        try:
            records = await self.remote.fetch_deletion_records()
        except LiftSyncError as e:
            self._record_error(report, "pull_deletions", e)
            return

        for record in records:
            try:
                if await self.tracker.import_from_cloud(record):
                    report.deletions_imported += 1
                if await self._apply_remote_deletion(record):
                    report.deletions_applied += 1
            except LiftSyncError as e:
                self._record_error(report, f"apply_deletion:{record.entity_type.value}", e)

    async def _apply_remote_deletion(self, record: DeletionRecord) -> bool:
        """Apply one remote tombstone locally. Returns whether anything changed."""
        entity_type = record.entity_type
        entity_id = record.entity_id

        if entity_type in (
            DeletionEntityType.MODULE,
            DeletionEntityType.WORKOUT,
            DeletionEntityType.PROGRAM,
        ):
            repository = {
                DeletionEntityType.MODULE: self.local.module_repository,
                DeletionEntityType.WORKOUT: self.local.workout_repository,
                DeletionEntityType.PROGRAM: self.local.program_repository,
            }[entity_type]
            entity = await repository.find(entity_id)
            if entity is None:
                return False
            if entity.updated_at > record.deleted_at:
                logger.info(
                    "local copy edited after remote deletion, keeping",
                    context="sync_deletions",
                    entity_type=entity_type.value,
                    entity_id=entity_id,
                )
                return False
            return await repository.delete_by_id(entity_id)

        if entity_type == DeletionEntityType.SESSION:
            return await self.local.session_repository.delete_by_id(entity_id)

        if entity_type == DeletionEntityType.CUSTOM_EXERCISE:
            return await self.local.exercise_repository.delete_by_id(entity_id)

        if entity_type == DeletionEntityType.SCHEDULED_WORKOUT:
            await self.events.publish(ev.DELETION_SYNCED_FROM_CLOUD, record)
            return True

        if entity_type in (
            DeletionEntityType.EXERCISE_INSTANCE,
            DeletionEntityType.WORKOUT_EXERCISE,
        ):
            # Consulted by the child merge, nothing to delete here
            return False

        raise ValueError(f"Unhandled deletion entity type: {entity_type}")

    async def _push_deletions(self, report: SyncReport) -> None:
        """Push unsynced tombstones and delete the entities they name remotely.

        A record is marked synced only once both the journal entry and the
        remote delete went through.
        """
        try:
            unsynced = await self.tracker.get_unsynced_deletions()
            if not unsynced:
                return
            await self.remote.save_deletion_records(unsynced)
        except LiftSyncError as e:
            self._record_error(report, "push_deletions", e)
            return

        for record in unsynced:
            try:
                await self._delete_remote_entity(record)
                await self.tracker.mark_as_synced(record.entity_type, record.entity_id)
                report.deletions_pushed += 1
            except LiftSyncError as e:
                self._record_error(report, f"push_deletion:{record.entity_type.value}", e)

    async def _delete_remote_entity(self, record: DeletionRecord) -> None:
        deleters = {
            DeletionEntityType.MODULE: self.remote.delete_module,
            DeletionEntityType.WORKOUT: self.remote.delete_workout,
            DeletionEntityType.PROGRAM: self.remote.delete_program,
            DeletionEntityType.SESSION: self.remote.delete_session,
            DeletionEntityType.SCHEDULED_WORKOUT: self.remote.delete_scheduled_workout,
            DeletionEntityType.CUSTOM_EXERCISE: self.remote.delete_custom_exercise,
        }
        deleter = deleters.get(record.entity_type)
        if deleter is not None:
            await deleter(record.entity_id)

    async def _is_suppressed(
        self,
        entity_type: DeletionEntityType,
        entity_id: str,
        updated_at: datetime,
        pending_ids: dict[DeletionEntityType, set[str]],
    ) -> bool:
        """A local deletion newer than the remote edit, or still pending, wins."""
        if await self.tracker.was_deleted_after(entity_type, entity_id, updated_at):
            return True
        return entity_id in pending_ids.get(entity_type, set())

    async def _merge_modules(self, snapshot: CloudSnapshot, pending_ids, report: SyncReport):
        stats = report.stats("modules")
        repository = self.local.module_repository
        for cloud_module in snapshot.modules:
            try:
                if await self._is_suppressed(
                    DeletionEntityType.MODULE, cloud_module.id, cloud_module.updated_at, pending_ids
                ):
                    logger.info(
                        "module deleted locally, skipping",
                        context="sync_from_cloud",
                        module=cloud_module.name,
                    )
                    stats.skipped_deleted += 1
                    continue
                tombstones = await self.tracker.get_child_tombstones(
                    DeletionEntityType.EXERCISE_INSTANCE, cloud_module.id
                )
                local_module = await repository.find(cloud_module.id)
                if local_module is None:
                    cloud_module.sync_status = SyncStatus.SYNCED
                    await repository.save(cloud_module)
                    stats.saved += 1
                    continue
                merged = merge_modules(local_module, cloud_module, tombstones)
                if needs_sync(local_module, merged):
                    logger.info(
                        "deep merging module", context="sync_from_cloud", module=merged.name
                    )
                    await repository.save(merged)
                    stats.saved += 1
                else:
                    stats.unchanged += 1
            except LiftSyncError as e:
                stats.failed += 1
                self._record_error(report, f"merge_module:{cloud_module.id}", e)

    async def _merge_workouts(self, snapshot: CloudSnapshot, pending_ids, report: SyncReport):
        stats = report.stats("workouts")
        repository = self.local.workout_repository
        for cloud_workout in snapshot.workouts:
            try:
                if await self._is_suppressed(
                    DeletionEntityType.WORKOUT,
                    cloud_workout.id,
                    cloud_workout.updated_at,
                    pending_ids,
                ):
                    logger.info(
                        "workout deleted locally, skipping",
                        context="sync_from_cloud",
                        workout=cloud_workout.name,
                    )
                    stats.skipped_deleted += 1
                    continue
                tombstones = await self.tracker.get_child_tombstones(
                    DeletionEntityType.WORKOUT_EXERCISE, cloud_workout.id
                )
                local_workout = await repository.find(cloud_workout.id)
                if local_workout is None:
                    cloud_workout.sync_status = SyncStatus.SYNCED
                    await repository.save(cloud_workout)
                    stats.saved += 1
                    continue
                merged = merge_workouts(local_workout, cloud_workout, tombstones)
                if needs_sync(local_workout, merged):
                    logger.info(
                        "deep merging workout", context="sync_from_cloud", workout=merged.name
                    )
                    await repository.save(merged)
                    stats.saved += 1
                else:
                    stats.unchanged += 1
            except LiftSyncError as e:
                stats.failed += 1
                self._record_error(report, f"merge_workout:{cloud_workout.id}", e)

    async def _merge_sessions(self, snapshot: CloudSnapshot, report: SyncReport):
        """Sessions are history: add unknown ones, never merge fields."""
        stats = report.stats("sessions")
        repository = self.local.session_repository
        deleted_ids = await self.tracker.get_deleted_ids(DeletionEntityType.SESSION)
        for cloud_session in snapshot.sessions:
            try:
                if cloud_session.id in deleted_ids:
                    stats.skipped_deleted += 1
                    continue
                if await repository.find(cloud_session.id) is not None:
                    stats.unchanged += 1
                    continue
                cloud_session.sync_status = SyncStatus.SYNCED
                await repository.save(cloud_session)
                stats.saved += 1
            except LiftSyncError as e:
                stats.failed += 1
                self._record_error(report, f"merge_session:{cloud_session.id}", e)

    async def _merge_exercises(self, snapshot: CloudSnapshot, report: SyncReport):
        """Custom exercises are add-only."""
        stats = report.stats("exercises")
        repository = self.local.exercise_repository
        deleted_ids = await self.tracker.get_deleted_ids(DeletionEntityType.CUSTOM_EXERCISE)
        for cloud_exercise in snapshot.exercises:
            try:
                if cloud_exercise.id in deleted_ids:
                    stats.skipped_deleted += 1
                    continue
                if await repository.find(cloud_exercise.id) is not None:
                    stats.unchanged += 1
                    continue
                await repository.save(cloud_exercise)
                stats.saved += 1
            except LiftSyncError as e:
                stats.failed += 1
                self._record_error(report, f"merge_exercise:{cloud_exercise.id}", e)

    async def _merge_programs(self, snapshot: CloudSnapshot, pending_ids, report: SyncReport):
        """Programs are replaced wholesale when the cloud copy is at least as new."""
        stats = report.stats("programs")
        repository = self.local.program_repository
        for cloud_program in snapshot.programs:
            try:
                if await self._is_suppressed(
                    DeletionEntityType.PROGRAM,
                    cloud_program.id,
                    cloud_program.updated_at,
                    pending_ids,
                ):
                    stats.skipped_deleted += 1
                    continue
                local_program = await repository.find(cloud_program.id)
                if local_program is not None and (
                    cloud_program.updated_at < local_program.updated_at
                    or not needs_sync(local_program, cloud_program)
                ):
                    stats.unchanged += 1
                    continue
                cloud_program.sync_status = SyncStatus.SYNCED
                await repository.save(cloud_program)
                stats.saved += 1
            except LiftSyncError as e:
                stats.failed += 1
                self._record_error(report, f"merge_program:{cloud_program.id}", e)

    # Push

    async def _push(self, report: SyncReport) -> None:
        logger.info("starting push to cloud", context="push_all_to_cloud")
        self._set_state(report, SyncState.PUSHING_DELETIONS)
        await self._push_deletions(report)

        self._set_state(report, SyncState.PUSHING)
        await self._push_collection(
            "modules", self.local.module_repository, self.remote.save_module, report
        )
        await self._push_collection(
            "workouts", self.local.workout_repository, self.remote.save_workout, report
        )
        await self._push_collection(
            "sessions", self.local.session_repository, self.remote.save_session, report
        )
        await self._push_collection(
            "exercises",
            self.local.exercise_repository,
            self.remote.save_custom_exercise,
            report,
        )
        await self._push_collection(
            "programs", self.local.program_repository, self.remote.save_program, report
        )

        await self.events.publish(ev.REQUEST_SCHEDULED_WORKOUTS_FOR_SYNC, self.remote)
        await self.events.publish(ev.REQUEST_USER_PROFILE_FOR_SYNC, self.remote)

    async def _push_collection(self, name: str, repository, save, report: SyncReport) -> None:
        """Push every entity of one collection; each push fails on its own."""
        stats = report.stats(name)
        try:
            entities = await repository.load_all()
        except LiftSyncError as e:
            self._record_error(report, f"push_{name}", e)
            return

        for entity in entities:
            try:
                await save(entity)
                stats.pushed += 1
            except LiftSyncError as e:
                stats.failed += 1
                self._record_error(report, f"push_{name}:{entity.id}", e)
                continue
            if getattr(entity, "sync_status", SyncStatus.SYNCED) != SyncStatus.SYNCED:
                entity.sync_status = SyncStatus.SYNCED
                try:
                    await repository.save(entity)
                except LiftSyncError as e:
                    self._record_error(report, f"mark_synced_{name}:{entity.id}", e)


def create_orchestrator(
    settings: Settings, remote: RemoteStore | None = None, events: EventBus | None = None
) -> SyncOrchestrator:
    """Wire an orchestrator over the configured local database.

    Without an explicit remote store the JSON directory store at
    ``settings.resolved_remote_dir`` is used; it must already exist.
    """
    from ..clients.file_store import JsonDirectoryRemoteStore
    from ..db.engine import get_db_path

    db_path = get_db_path(settings.data_dir)
    local = LocalStore(db_path, session_window_days=settings.session_window_days)
    tracker = DeletionTracker(
        local.deletion_repository, retention_days=settings.deletion_retention_days
    )
    if remote is None:
        remote = JsonDirectoryRemoteStore(settings.resolved_remote_dir)
    return SyncOrchestrator(local, remote, tracker, events=events, settings=settings)
