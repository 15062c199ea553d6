"""Analytics routes."""

from fastapi import APIRouter, Depends

from ...services import analytics as stats
from ...services.sync import SyncOrchestrator
from .deps import get_orchestrator

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/summary")
async def summary(orchestrator: SyncOrchestrator = Depends(get_orchestrator)):
    return stats.summary(orchestrator.local.sessions)


@router.get("/e1rm/{exercise_name}")
async def e1rm(exercise_name: str, orchestrator: SyncOrchestrator = Depends(get_orchestrator)):
    """Best estimated 1RM per day for one exercise."""
    points = stats.e1rm_progress(exercise_name, orchestrator.local.sessions)
    return {"exercise_name": exercise_name, "points": [p.to_dict() for p in points]}
