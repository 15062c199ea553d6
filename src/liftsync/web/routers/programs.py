"""Program routes."""

from fastapi import APIRouter, Depends, HTTPException

from ...services.progression import calculate_suggestions, planned_exercises
from ...services.sync import SyncOrchestrator
from .deps import get_orchestrator

router = APIRouter(prefix="/programs", tags=["programs"])


@router.get("/{program_id}/suggestions")
async def suggestions(
    program_id: str,
    workout_id: str,
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
):
    """Next-session suggestions for a workout under a program."""
    local = orchestrator.local
    program = await local.program_repository.find(program_id)
    if program is None:
        raise HTTPException(status_code=404, detail="Program not found")
    workout = await local.workout_repository.find(workout_id)
    if workout is None:
        raise HTTPException(status_code=404, detail="Workout not found")

    names = {e.id: e.name for e in local.exercises}
    exercises = planned_exercises(workout, local.modules, names)
    result = calculate_suggestions(exercises, workout.id, program, local.sessions)
    return {
        "program_id": program.id,
        "workout_id": workout.id,
        "suggestions": [
            {
                "exercise_name": e.exercise_name,
                "exercise_instance_id": e.source_exercise_instance_id,
                **result[e.id].to_dict(),
            }
            for e in exercises
            if e.id in result
        ],
    }
