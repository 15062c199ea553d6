"""CLI commands for liftsync."""

from .analytics import analytics
from .deletions import deletions
from .init import init
from .serve import serve
from .suggest import outcomes, suggest
from .sync import sync, sync_status

__all__ = [
    "analytics",
    "deletions",
    "init",
    "outcomes",
    "serve",
    "suggest",
    "sync",
    "sync_status",
]
