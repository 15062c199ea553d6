"""Shared router dependencies."""

from fastapi import Request

from ...services.sync import SyncOrchestrator


def get_orchestrator(request: Request) -> SyncOrchestrator:
    """Get the orchestrator from app state."""
    return request.app.state.orchestrator
