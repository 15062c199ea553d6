"""Analytics commands."""

import json

import click

from ..services import analytics as stats
from .base import async_command, echo_info, ensure_initialized, format_table, load_orchestrator


@click.group()
@click.pass_context
def analytics(ctx):
    """Training analytics over recent sessions."""
    ensure_initialized(ctx)


@analytics.command()
@click.option("--json", "as_json", is_flag=True, help="Print the raw summary as JSON")
@async_command
async def summary(as_json: bool):
    """Show streak, volume, records and suggestion health."""
    orchestrator = await load_orchestrator()
    data = stats.summary(orchestrator.local.sessions)

    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    if not data["analyzed_sessions"]:
        echo_info("No sessions recorded yet")
        return

    click.echo()
    click.echo(f"Current streak:     {data['current_streak']} day(s)")
    click.echo(f"Workouts this week: {data['workouts_this_week']}")
    breakdown = data["progression_breakdown"]
    click.echo(
        f"Progression (28d):  {breakdown['progress']} progress, "
        f"{breakdown['stay']} stay, {breakdown['regress']} regress"
    )

    lifts = data["most_trained_lifts"]
    if lifts:
        click.echo()
        rows = [
            [
                t["exercise_name"],
                str(t["session_count"]),
                f"{t['latest_top_set']['weight']:g} x {t['latest_top_set']['reps']}",
            ]
            for t in lifts
        ]
        click.echo(format_table(["Lift", "Sessions", "Top set"], rows))

    prs = data["recent_prs"]
    if prs:
        click.echo()
        rows = [
            [pr["exercise_name"], pr["date"][:10], f"{pr['previous_best']:g} -> {pr['new_best']:g}"]
            for pr in prs
        ]
        click.echo(format_table(["PR", "Date", "e1RM"], rows))

    health = data["engine_health"]
    if health["total_decisions"]:
        click.echo()
        click.echo(
            f"Suggestions accepted: {round(health['acceptance_rate'] * 100)}% "
            f"of {health['total_decisions']}"
        )
    for alert in data["alerts"]:
        click.echo(click.style("[ALERT] ", fg="yellow") + f"{alert['exercise_name']}: {alert['message']}")
