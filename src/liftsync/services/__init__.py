"""Sync, progression and analytics services for liftsync."""

from .deletion_tracker import DeletionTracker
from .events import EventBus
from .friendships import FriendshipService
from .local_store import LocalStore
from .merge import content_hash, merge_children, merge_modules, merge_workouts, needs_sync
from .progression import apply_session_outcomes, calculate_suggestions, planned_exercises
from .sync import SyncOrchestrator, SyncReport, SyncState, create_orchestrator

__all__ = [
    "apply_session_outcomes",
    "calculate_suggestions",
    "content_hash",
    "create_orchestrator",
    "DeletionTracker",
    "EventBus",
    "FriendshipService",
    "LocalStore",
    "merge_children",
    "merge_modules",
    "merge_workouts",
    "needs_sync",
    "planned_exercises",
    "SyncOrchestrator",
    "SyncReport",
    "SyncState",
]
