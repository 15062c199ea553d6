"""Sync routes."""

from typing import Literal

from fastapi import APIRouter, Depends

from ...services.sync import SyncOrchestrator
from .deps import get_orchestrator

router = APIRouter(prefix="/sync", tags=["sync"])


@router.post("")
async def run_sync(
    direction: Literal["pull", "push", "all"] = "all",
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
):
    """Run one sync cycle and return its report.

    A failed cycle still answers 200; the report carries the error and
    the next call retries.
    """
    if direction == "pull":
        report = await orchestrator.sync_from_cloud()
    elif direction == "push":
        report = await orchestrator.push_all_to_cloud()
    else:
        report = await orchestrator.sync_all()
    return report.to_dict()


@router.get("/status")
async def sync_status(orchestrator: SyncOrchestrator = Depends(get_orchestrator)):
    """Current state plus the last sync result."""
    return orchestrator.status()
