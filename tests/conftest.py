"""Pytest configuration and fixtures."""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio

from liftsync.clients.memory import InMemoryRemoteStore
from liftsync.config import Settings
from liftsync.db.engine import init_db
from liftsync.models.exercises import ExerciseInstance, SetGroup
from liftsync.models.module import Module
from liftsync.models.program import (
    Program,
    ProgressionPolicy,
    ProgressionRecommendation,
    ProgressionRule,
    ProgressionSuggestion,
)
from liftsync.models.session import (
    CompletedModule,
    CompletedSetGroup,
    Session,
    SessionExercise,
    SetData,
)
from liftsync.models.workout import Workout
from liftsync.services.deletion_tracker import DeletionTracker
from liftsync.services.events import EventBus
from liftsync.services.local_store import LocalStore
from liftsync.services.sync import SyncOrchestrator

NOW = datetime(2026, 3, 11, 12, 0, tzinfo=timezone.utc)  # a Wednesday


@pytest.fixture
def temp_db_path():
    """Create a temporary database path."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test.db"


@pytest_asyncio.fixture
async def db_path(temp_db_path):
    """Temporary database with the schema created."""
    await init_db(temp_db_path)
    return temp_db_path


@pytest.fixture
def settings(temp_db_path):
    return Settings(data_dir=temp_db_path.parent, remote_dir=temp_db_path.parent / "remote")


@pytest.fixture
def local_store(db_path):
    return LocalStore(db_path)


@pytest.fixture
def tracker(local_store):
    return DeletionTracker(local_store.deletion_repository)


@pytest.fixture
def remote():
    return InMemoryRemoteStore()


@pytest.fixture
def events():
    return EventBus()


@pytest.fixture
def orchestrator(local_store, remote, tracker, events, settings):
    return SyncOrchestrator(local_store, remote, tracker, events=events, settings=settings)


@pytest.fixture
def sample_module():
    """A strength module with two exercises."""
    t0 = NOW - timedelta(days=10)
    return Module(
        name="Lower Body",
        exercises=[
            ExerciseInstance(
                name="Squat",
                order=0,
                set_groups=[SetGroup(sets=3, target_reps=5, target_weight=225)],
                created_at=t0,
                updated_at=t0,
            ),
            ExerciseInstance(
                name="Romanian Deadlift",
                order=1,
                set_groups=[SetGroup(sets=3, target_reps=8, target_weight=135)],
                created_at=t0,
                updated_at=t0,
            ),
        ],
        created_at=t0,
        updated_at=t0,
    )


@pytest.fixture
def sample_workout(sample_module):
    workout = Workout(name="Leg Day", created_at=sample_module.created_at)
    workout.add_module(sample_module.id)
    workout.updated_at = sample_module.updated_at
    return workout


def _exercise(
    name: str,
    sets: list[tuple],
    instance_id: str | None = None,
    recommendation: ProgressionRecommendation | None = None,
    suggestion: ProgressionSuggestion | None = None,
) -> SessionExercise:
    """Build a session exercise from ``(weight, reps)`` or ``(weight, reps, completed)``."""
    set_data = []
    for i, entry in enumerate(sets, start=1):
        weight, reps = entry[0], entry[1]
        completed = entry[2] if len(entry) > 2 else True
        set_data.append(SetData(set_number=i, weight=weight, reps=reps, completed=completed))
    return SessionExercise(
        exercise_name=name,
        completed_set_groups=[CompletedSetGroup(sets=set_data)],
        source_exercise_instance_id=instance_id,
        progression_recommendation=recommendation,
        progression_suggestion=suggestion,
    )


@pytest.fixture
def make_exercise():
    """Factory for session exercises."""
    return _exercise


@pytest.fixture
def make_session():
    """Factory for sessions holding one module of exercises."""

    def factory(
        date: datetime,
        exercises: list[SessionExercise],
        workout_id: str = "workout-1",
        skipped: bool = False,
    ) -> Session:
        return Session(
            workout_id=workout_id,
            workout_name="Leg Day",
            date=date,
            completed_modules=[
                CompletedModule(
                    module_name="Lower Body", skipped=skipped, completed_exercises=exercises
                )
            ],
            created_at=date,
            updated_at=date,
        )

    return factory


@pytest.fixture
def fixed_program():
    """Fixed-policy program with a 2.5% / 5 lb rule."""
    return Program(
        name="Strength Block",
        progression_enabled=True,
        progression_policy=ProgressionPolicy.FIXED,
        default_progression_rule=ProgressionRule(
            percentage_increase=2.5, rounding_increment=5.0, minimum_increase=5.0
        ),
    )
