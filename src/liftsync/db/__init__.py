"""Database layer for liftsync."""

from .engine import get_db_path, init_db
from .repositories import (
    DeletionRecordRepository,
    EntityRepository,
    ExerciseTemplateRepository,
    FriendshipRepository,
    ModuleRepository,
    ProgramRepository,
    SessionRepository,
    WorkoutRepository,
)

__all__ = [
    "DeletionRecordRepository",
    "EntityRepository",
    "ExerciseTemplateRepository",
    "FriendshipRepository",
    "get_db_path",
    "init_db",
    "ModuleRepository",
    "ProgramRepository",
    "SessionRepository",
    "WorkoutRepository",
]
