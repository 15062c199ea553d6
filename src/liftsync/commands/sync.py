"""Sync commands."""

import click

from ..services.sync import SyncReport
from .base import (
    async_command,
    echo_error,
    echo_info,
    echo_success,
    echo_warning,
    ensure_initialized,
    format_table,
    load_orchestrator,
)


def _print_report(report: SyncReport) -> None:
    rows = [
        [
            name,
            str(stats.saved),
            str(stats.skipped_deleted),
            str(stats.unchanged),
            str(stats.pushed),
            str(stats.failed),
        ]
        for name, stats in sorted(report.collections.items())
    ]
    if rows:
        click.echo()
        click.echo(
            format_table(["Collection", "Saved", "Skipped", "Unchanged", "Pushed", "Failed"], rows)
        )
        click.echo()
    echo_info(
        f"Deletions: {report.deletions_imported} imported, "
        f"{report.deletions_applied} applied, {report.deletions_pushed} pushed"
    )
    for error in report.errors:
        echo_warning(error)


@click.command()
@click.argument(
    "direction", type=click.Choice(["pull", "push", "all"]), default="all", required=False
)
@click.pass_context
@async_command
async def sync(ctx, direction: str):
    """Sync the local database with the remote store.

    \b
    pull  fetch remote changes and merge them locally
    push  upload local entities and deletions
    all   pull, then push (default)
    """
    ensure_initialized(ctx)
    orchestrator = await load_orchestrator()

    if direction == "pull":
        report = await orchestrator.sync_from_cloud()
    elif direction == "push":
        report = await orchestrator.push_all_to_cloud()
    else:
        report = await orchestrator.sync_all()

    _print_report(report)
    if not report.succeeded:
        echo_error(f"Sync failed, will retry next time: {report.error}")
        ctx.exit(1)
    echo_success(f"Sync ({direction}) complete")


@click.command(name="status")
@click.pass_context
@async_command
async def sync_status(ctx):
    """Show local entity and tombstone counts."""
    ensure_initialized(ctx)
    orchestrator = await load_orchestrator()
    local = orchestrator.local
    rows = [
        ["modules", str(len(local.modules))],
        ["workouts", str(len(local.workouts))],
        ["sessions (recent)", str(len(local.sessions))],
        ["programs", str(len(local.programs))],
        ["exercises", str(len(local.exercises))],
        ["tombstones", str(await orchestrator.tracker.record_count())],
    ]
    click.echo(format_table(["Collection", "Count"], rows))
