"""Deletion journal routes."""

from fastapi import APIRouter, Depends

from ...models.deletion import DeletionEntityType
from ...services.sync import SyncOrchestrator
from .deps import get_orchestrator

router = APIRouter(prefix="/deletions", tags=["deletions"])


@router.get("")
async def list_deletions(
    entity_type: DeletionEntityType | None = None,
    unsynced: bool = False,
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
):
    """List tombstones, optionally filtered by type or pending push."""
    tracker = orchestrator.tracker
    records = (
        await tracker.get_unsynced_deletions() if unsynced else await tracker.get_all_records()
    )
    if entity_type is not None:
        records = [r for r in records if r.entity_type == entity_type]
    return {"deletions": [r.to_dict() for r in records], "count": len(records)}
