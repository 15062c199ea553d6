"""FastAPI application for the liftsync HTTP API."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from .. import __version__
from ..clients.base import RemoteStore
from ..config import Settings, get_settings
from ..db.engine import get_db_path, init_db
from ..services.sync import create_orchestrator
from ..utils.logging import get_logger
from .routers import analytics, deletions, programs, sync

logger = get_logger(__name__)


def create_app(settings: Settings | None = None, remote: RemoteStore | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    ``remote`` replaces the JSON directory store, mainly for tests.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await init_db(get_db_path(settings.data_dir))
        orchestrator = create_orchestrator(settings, remote=remote)
        await orchestrator.local.reload()
        app.state.orchestrator = orchestrator
        logger.info("api started", data_dir=str(settings.data_dir))
        yield

    app = FastAPI(
        title="liftsync",
        description="Offline-first workout sync and progression API",
        version=__version__,
        lifespan=lifespan,
    )

    app.include_router(sync.router)
    app.include_router(deletions.router)
    app.include_router(analytics.router)
    app.include_router(programs.router)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    return app
