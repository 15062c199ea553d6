"""Deletion journal commands."""

import click

from ..models.base import format_datetime
from ..models.deletion import DeletionEntityType
from .base import (
    async_command,
    echo_info,
    echo_success,
    ensure_initialized,
    format_table,
    load_orchestrator,
)


@click.group()
@click.pass_context
def deletions(ctx):
    """Inspect and maintain the deletion journal."""
    ensure_initialized(ctx)


@deletions.command(name="list")
@click.option(
    "--type",
    "entity_type",
    type=click.Choice([t.value for t in DeletionEntityType]),
    help="Only show one entity type",
)
@click.option("--unsynced", is_flag=True, help="Only show tombstones not yet pushed")
@async_command
async def list_deletions(entity_type: str | None, unsynced: bool):
    """List recorded deletions."""
    orchestrator = await load_orchestrator()
    tracker = orchestrator.tracker

    if unsynced:
        records = await tracker.get_unsynced_deletions()
    else:
        records = await tracker.get_all_records()
    if entity_type:
        records = [r for r in records if r.entity_type.value == entity_type]

    if not records:
        echo_info("No deletions recorded")
        return

    rows = [
        [
            r.entity_type.value,
            r.entity_id,
            r.parent_id or "",
            format_datetime(r.deleted_at),
            format_datetime(r.synced_at) or "pending",
        ]
        for r in records
    ]
    click.echo()
    click.echo(format_table(["Type", "Entity", "Parent", "Deleted", "Synced"], rows))
    click.echo()
    click.echo(f"Total: {len(records)} deletion(s)")


@deletions.command()
@async_command
async def cleanup():
    """Remove synced tombstones older than the retention period."""
    orchestrator = await load_orchestrator()
    removed = await orchestrator.tracker.cleanup_old_records()
    echo_success(f"Removed {removed} old tombstone(s)")
