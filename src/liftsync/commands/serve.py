"""HTTP API command."""

import click

from ..config import get_settings
from .base import ensure_initialized


@click.command()
@click.option("--host", default=None, help="Host to bind to (default: LIFTSYNC_API_HOST)")
@click.option("--port", "-p", default=None, type=int, help="Port to bind to (default: LIFTSYNC_API_PORT)")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None, reload: bool):
    """Serve sync, deletion, analytics and suggestion endpoints.

    The API works on the same database and remote directory as the CLI,
    so a sync triggered over HTTP is visible to `liftsync status`.

    Examples:

        liftsync serve

        LIFTSYNC_API_PORT=9000 liftsync serve --reload
    """
    ensure_initialized(ctx)

    import uvicorn

    from ..web import create_app

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    click.echo(click.style("Starting liftsync API...", fg="green"))
    click.echo(f"  Data:    {settings.data_dir}")
    click.echo(f"  Remote:  {settings.resolved_remote_dir}")
    click.echo(f"  Listen:  http://{host}:{port}")

    if reload:
        uvicorn.run("liftsync.web:create_app", host=host, port=port, reload=True, factory=True)
    else:
        uvicorn.run(create_app(settings), host=host, port=port, log_level=settings.log_level.lower())
