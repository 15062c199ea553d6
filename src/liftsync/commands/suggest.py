"""Progression commands."""

import click

from ..config import get_settings
from ..models.base import SyncStatus, utc_now
from ..services.progression import (
    apply_session_outcomes,
    calculate_suggestions,
    planned_exercises,
)
from .base import (
    async_command,
    echo_error,
    echo_info,
    echo_success,
    ensure_initialized,
    format_table,
    load_orchestrator,
)


@click.command()
@click.argument("workout_id")
@click.option("--program", "program_id", help="Program ID (defaults to the active program)")
@click.pass_context
@async_command
async def suggest(ctx, workout_id: str, program_id: str | None):
    """Show next-session suggestions for a workout."""
    ensure_initialized(ctx)
    orchestrator = await load_orchestrator()
    local = orchestrator.local

    workout = await local.workout_repository.find(workout_id)
    if workout is None:
        echo_error(f"Workout {workout_id} not found")
        ctx.exit(1)

    if program_id:
        program = await local.program_repository.find(program_id)
    else:
        program = await local.program_repository.get_active()
    if program is None:
        echo_error("No program found; pass --program or activate one")
        ctx.exit(1)

    names = {e.id: e.name for e in local.exercises}
    exercises = planned_exercises(workout, local.modules, names)
    suggestions = calculate_suggestions(exercises, workout.id, program, local.sessions)

    if not suggestions:
        echo_info("No suggestions (no matching history or progression disabled)")
        return

    rows = []
    for exercise in exercises:
        suggestion = suggestions.get(exercise.id)
        if suggestion is None:
            continue
        rows.append(
            [
                exercise.exercise_name,
                suggestion.formatted_suggestion,
                suggestion.decision_code or "",
                f"{suggestion.confidence:.2f}" if suggestion.confidence is not None else "",
            ]
        )
    click.echo()
    click.echo(f"{workout.name} ({program.name})")
    click.echo(format_table(["Exercise", "Suggestion", "Decision", "Confidence"], rows))


@click.command()
@click.argument("session_id")
@click.option("--program", "program_id", help="Program ID (defaults to the active program)")
@click.pass_context
@async_command
async def outcomes(ctx, session_id: str, program_id: str | None):
    """Fold a finished session into the program's adaptive state."""
    ensure_initialized(ctx)
    settings = get_settings()
    orchestrator = await load_orchestrator()
    local = orchestrator.local

    session = await local.session_repository.find(session_id)
    if session is None:
        echo_error(f"Session {session_id} not found")
        ctx.exit(1)

    program_id = program_id or session.program_id
    if program_id:
        program = await local.program_repository.find(program_id)
    else:
        program = await local.program_repository.get_active()
    if program is None:
        echo_error("No program found; pass --program or activate one")
        ctx.exit(1)

    results = apply_session_outcomes(
        program,
        session,
        history_size=settings.progression_history_size,
        learning_rate=settings.confidence_learning_rate,
    )
    if not results:
        echo_info("No exercises in this session carried a suggestion")
        return

    session.updated_at = utc_now()
    session.sync_status = SyncStatus.PENDING_SYNC
    await local.program_repository.save(program)
    await local.session_repository.save(session)

    names = {
        e.source_exercise_instance_id: e.exercise_name for e in session.performed_exercises
    }
    rows = []
    for instance_id, outcome in results.items():
        state = program.progression_state_for(instance_id)
        rows.append(
            [
                names.get(instance_id, instance_id),
                outcome.value,
                f"{state.success_streak}/{state.fail_streak}",
                f"{state.confidence:.2f}",
            ]
        )
    click.echo()
    click.echo(format_table(["Exercise", "Outcome", "Streak (S/F)", "Confidence"], rows))
    echo_success(f"Updated {len(results)} exercise(s) in {program.name}")
