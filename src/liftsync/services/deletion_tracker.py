"""Local journal of deletions, used to stop sync from resurrecting records."""

from datetime import datetime, timedelta

from ..db.repositories import DeletionRecordRepository
from ..models.base import utc_now
from ..models.deletion import DeletionEntityType, DeletionRecord
from ..utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_RETENTION_DAYS = 30


class DeletionTracker:
    """Tombstone journal keyed by (entity_type, entity_id).

    Recording is an upsert: the last call wins and resets the synced flag,
    so a re-deleted entity is pushed again. Unsynced records are never
    pruned, whatever their age.
    """

    def __init__(
        self,
        repository: DeletionRecordRepository,
        retention_days: int = DEFAULT_RETENTION_DAYS,
    ):
        self.repository = repository
        self.retention_days = retention_days

    async def record_deletion(
        self,
        entity_type: DeletionEntityType,
        entity_id: str,
        parent_id: str | None = None,
        deleted_at: datetime | None = None,
    ) -> DeletionRecord:
        """Mark an entity as deleted locally."""
        record = DeletionRecord(
            entity_type=entity_type,
            entity_id=entity_id,
            deleted_at=deleted_at or utc_now(),
            parent_id=parent_id,
        )
        await self.repository.upsert(record)
        logger.info(
            "deletion recorded",
            entity_type=entity_type.value,
            entity_id=entity_id,
            parent_id=parent_id,
        )
        return record

    async def record_deletions(
        self, entity_type: DeletionEntityType, entity_ids: list[str]
    ) -> list[DeletionRecord]:
        """Record several deletions of the same type with one timestamp."""
        now = utc_now()
        return [
            await self.record_deletion(entity_type, entity_id, deleted_at=now)
            for entity_id in entity_ids
        ]

    async def get_record(
        self, entity_type: DeletionEntityType, entity_id: str
    ) -> DeletionRecord | None:
        return await self.repository.get(entity_type, entity_id)

    async def is_deleted(self, entity_type: DeletionEntityType, entity_id: str) -> bool:
        return await self.repository.get(entity_type, entity_id) is not None

    async def get_deleted_ids(self, entity_type: DeletionEntityType) -> set[str]:
        """Ids of every tombstone of a type, synced or not."""
        return {r.entity_id for r in await self.repository.list_by_type(entity_type)}

    async def was_deleted_after(
        self, entity_type: DeletionEntityType, entity_id: str, when: datetime
    ) -> bool:
        """True iff a tombstone exists with ``deleted_at`` strictly after ``when``."""
        record = await self.repository.get(entity_type, entity_id)
        return record is not None and record.deleted_at > when

    async def get_child_tombstones(
        self, entity_type: DeletionEntityType, parent_id: str
    ) -> dict[str, datetime]:
        """Child-grain tombstones of one parent as ``{child_id: deleted_at}``."""
        records = await self.repository.list_children(entity_type, parent_id)
        return {r.entity_id: r.deleted_at for r in records}

    async def get_unsynced_deletions(self) -> list[DeletionRecord]:
        return await self.repository.list_unsynced()

    async def get_all_records(self) -> list[DeletionRecord]:
        return await self.repository.list_all()

    async def mark_as_synced(self, entity_type: DeletionEntityType, entity_id: str) -> None:
        await self.repository.mark_synced(entity_type, entity_id, utc_now())

    async def import_from_cloud(self, record: DeletionRecord) -> bool:
        """Merge a remote tombstone into the journal.

        The later ``deleted_at`` wins. Imported records are marked synced
        since the remote already has them. Returns whether the journal
        changed.
        """
        existing = await self.repository.get(record.entity_type, record.entity_id)
        if existing is not None and existing.deleted_at >= record.deleted_at:
            return False
        await self.repository.upsert(
            DeletionRecord(
                id=existing.id if existing else record.id,
                entity_type=record.entity_type,
                entity_id=record.entity_id,
                deleted_at=record.deleted_at,
                synced_at=utc_now(),
                parent_id=record.parent_id,
            )
        )
        return True

    def _cutoff(self, now: datetime | None) -> datetime:
        return (now or utc_now()) - timedelta(days=self.retention_days)

    async def get_records_to_cleanup(self, now: datetime | None = None) -> list[DeletionRecord]:
        """Synced records past the retention window."""
        return await self.repository.list_synced_before(self._cutoff(now))

    async def cleanup_old_records(self, now: datetime | None = None) -> int:
        """Drop synced records older than the retention window."""
        removed = await self.repository.delete_synced_before(self._cutoff(now))
        if removed:
            logger.info("deletion records cleaned up", removed=removed)
        return removed

    async def remove_record(self, entity_type: DeletionEntityType, entity_id: str) -> bool:
        return await self.repository.remove(entity_type, entity_id)

    async def record_count(self, entity_type: DeletionEntityType | None = None) -> int:
        return await self.repository.count(entity_type)
