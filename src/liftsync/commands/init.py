"""Initialize project command."""

import click

from ..clients.file_store import JsonDirectoryRemoteStore
from ..config import get_settings
from ..db import get_db_path, init_db
from .base import async_command, echo_info, echo_success


@click.command()
@async_command
async def init():
    """Initialize the liftsync data directory and database.

    Creates the SQLite database with the required schema and the local
    remote-store directory used by 'liftsync sync'.
    """
    settings = get_settings()
    db_path = get_db_path(settings.data_dir)

    echo_info(f"Initializing liftsync in {settings.data_dir}")

    await init_db(db_path)
    echo_success("Database initialized")

    JsonDirectoryRemoteStore.create(settings.resolved_remote_dir)
    echo_success(f"Remote store ready at {settings.resolved_remote_dir}")

    click.echo()
    click.echo("Next steps:")
    click.echo("  liftsync sync all          # Pull, merge and push")
    click.echo("  liftsync analytics summary")
