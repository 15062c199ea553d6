"""Data models for liftsync."""

from .base import SyncStatus
from .deletion import DeletionEntityType, DeletionRecord
from .exercises import ExerciseInstance, ExerciseTemplate, ExerciseType, MetricType, SetGroup
from .module import Module, ModuleType
from .program import (
    ExerciseProgressionState,
    Program,
    ProgramWorkoutSlot,
    ProgressionMetric,
    ProgressionPolicy,
    ProgressionRecommendation,
    ProgressionRule,
    ProgressionStrategy,
    ProgressionSuggestion,
    RulePreset,
    ScheduleType,
)
from .scheduled import ScheduledWorkout
from .session import CompletedModule, CompletedSetGroup, Session, SessionExercise, SetData, Side
from .social import Conversation, Friendship, FriendshipStatus, Message, Post, PostContentType
from .user_profile import DistanceUnit, UserProfile, WeightUnit
from .workout import ModuleReference, Workout, WorkoutExercise

__all__ = [
    "CompletedModule",
    "CompletedSetGroup",
    "Conversation",
    "DeletionEntityType",
    "DeletionRecord",
    "DistanceUnit",
    "ExerciseInstance",
    "ExerciseProgressionState",
    "ExerciseTemplate",
    "ExerciseType",
    "Friendship",
    "FriendshipStatus",
    "Message",
    "MetricType",
    "Module",
    "ModuleReference",
    "ModuleType",
    "Post",
    "PostContentType",
    "Program",
    "ProgramWorkoutSlot",
    "ProgressionMetric",
    "ProgressionPolicy",
    "ProgressionRecommendation",
    "ProgressionRule",
    "ProgressionStrategy",
    "ProgressionSuggestion",
    "RulePreset",
    "ScheduleType",
    "ScheduledWorkout",
    "Session",
    "SessionExercise",
    "SetData",
    "SetGroup",
    "Side",
    "SyncStatus",
    "UserProfile",
    "WeightUnit",
    "Workout",
    "WorkoutExercise",
]
