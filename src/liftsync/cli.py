"""CLI entry point for liftsync."""

import click

from . import __version__
from .commands import analytics, deletions, init, outcomes, serve, suggest, sync, sync_status
from .config import get_settings
from .utils.logging import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="liftsync")
@click.option("--verbose", "-v", is_flag=True, help="Log at DEBUG level")
def main(verbose: bool):
    """liftsync: offline-first workout tracking sync.

    Keeps a local SQLite database of modules, workouts, sessions and
    programs in step with a remote document store, and suggests the next
    session's loads.

    Example usage:

        # Initialize the project
        liftsync init

        # Pull, merge and push
        liftsync sync all

        # Next-session suggestions
        liftsync suggest <workout_id>
    """
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.log_level, settings.log_json)


main.add_command(init)
main.add_command(sync)
main.add_command(sync_status)
main.add_command(deletions)
main.add_command(suggest)
main.add_command(outcomes)
main.add_command(analytics)
main.add_command(serve)


def run():
    """Run the CLI."""
    main()


if __name__ == "__main__":
    run()
