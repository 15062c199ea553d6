"""Local repositories plus the in-memory collections the app reads from."""

from pathlib import Path

from ..db.engine import get_db_path
from ..db.repositories import (
    DeletionRecordRepository,
    ExerciseTemplateRepository,
    ModuleRepository,
    ProgramRepository,
    SessionRepository,
    WorkoutRepository,
)
from ..models.exercises import ExerciseTemplate
from ..models.module import Module
from ..models.program import Program
from ..models.session import Session
from ..models.workout import Workout
from ..utils.logging import get_logger

logger = get_logger(__name__)


class LocalStore:
    """Owns the local repositories and the loaded collections.

    The collections are replaced wholesale by ``reload()``; nothing else in
    the sync engine mutates them.
    """

    def __init__(self, db_path: Path | None = None, session_window_days: int = 90):
        self.db_path = db_path or get_db_path()
        self.session_window_days = session_window_days

        self.module_repository = ModuleRepository(self.db_path)
        self.workout_repository = WorkoutRepository(self.db_path)
        self.session_repository = SessionRepository(self.db_path)
        self.program_repository = ProgramRepository(self.db_path)
        self.exercise_repository = ExerciseTemplateRepository(self.db_path)
        self.deletion_repository = DeletionRecordRepository(self.db_path)

        self.modules: list[Module] = []
        self.workouts: list[Workout] = []
        self.sessions: list[Session] = []
        self.programs: list[Program] = []
        self.exercises: list[ExerciseTemplate] = []

    async def reload(self) -> None:
        """Reload every collection from the repositories.

        Sessions are limited to the recent window; older history is paged
        in through ``load_more_sessions``.
        """
        self.modules = await self.module_repository.load_all()
        self.workouts = await self.workout_repository.load_all()
        self.sessions = await self.session_repository.load_recent(self.session_window_days)
        self.programs = await self.program_repository.load_all()
        self.exercises = await self.exercise_repository.load_all()
        logger.debug(
            "local collections reloaded",
            modules=len(self.modules),
            workouts=len(self.workouts),
            sessions=len(self.sessions),
            programs=len(self.programs),
            exercises=len(self.exercises),
        )

    async def load_more_sessions(self, limit: int = 50) -> list[Session]:
        """Append the next page of older sessions to ``sessions``."""
        if not self.sessions:
            page = await self.session_repository.load_recent(self.session_window_days)
        else:
            oldest = min(s.date for s in self.sessions)
            page = await self.session_repository.load_more(oldest, limit)
        self.sessions.extend(page)
        return page
