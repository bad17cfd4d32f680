"""Update commands for the toolsync CLI.

Commands:
- update: Refresh the shared cache and apply it to projects
- status: Show the versions recorded in the ledger
"""

from __future__ import annotations

import signal
import sys
from datetime import datetime
from pathlib import Path
from types import FrameType

import click

from toolsync.client.cli.config import build_config
from toolsync.client.cli.logs import setup_logging

EXIT_FAILED = 1
EXIT_PARTIAL = 2
EXIT_BUSY = 3

FORCE_TOKEN = "force"


def _exit_on_sigterm(signum: int, frame: FrameType | None) -> None:
    # SystemExit unwinds the run lock and ledger context managers
    sys.exit(128 + signum)


def _format_timestamp(value: float) -> str:
    if not value:
        return "never"
    return datetime.fromtimestamp(value).isoformat(sep=" ", timespec="seconds")


@click.command()
@click.argument("projects", nargs=-1, type=click.Path(path_type=Path))
@click.option("--force", "-f", is_flag=True, help="Check for updates even if checked today.")
@click.option("--verbose", "-v", is_flag=True, help="Show progress messages.")
def update(projects: tuple[Path, ...], force: bool, verbose: bool) -> None:
    """Update the toolchain and the given PROJECTS.

    A trailing "force" argument is accepted as an alias of --force.
    """
    from toolsync.client.api import UpdateClient
    from toolsync.client.sync import RunInProgressError, UpdateError, run_update

    paths = list(projects)
    if paths and str(paths[-1]).lower() == FORCE_TOKEN and not paths[-1].exists():
        force = True
        paths.pop()

    config = build_config()
    setup_logging(config.log_path, verbose)

    previous_handler = signal.signal(signal.SIGTERM, _exit_on_sigterm)
    try:
        with UpdateClient(config) as client:
            report = run_update(config, client, paths, force=force)
    except RunInProgressError as e:
        click.echo(str(e))
        sys.exit(EXIT_BUSY)
    except UpdateError as e:
        click.echo(f"Error: Update failed: {e}", err=True)
        sys.exit(EXIT_FAILED)
    finally:
        signal.signal(signal.SIGTERM, previous_handler)

    if not report.manifest_checked:
        click.echo("Toolchain checked recently (use --force to check now)")
    for key in report.installed:
        click.echo(f"Updated {key}")
    for key in report.deferred:
        click.echo(f"Updated {key} (file in use, replacement scheduled)")
    for path in report.resources:
        click.echo(f"Updated resource {path}")
    if report.updater_staged:
        click.echo("A new updater was downloaded and will be used on next start")

    for project, keys in report.project_updates.items():
        if keys:
            click.echo(f"Updated project files in {project}: {', '.join(keys)}")
        else:
            click.echo(f"Project files are up to date in {project}")

    if report.has_failures:
        click.echo(f"Error: Failed to update: {', '.join(report.failed)}", err=True)
        sys.exit(EXIT_PARTIAL)


@click.command()
def status() -> None:
    """Show installed toolchain versions."""
    from toolsync.client.state import VersionLedger
    from toolsync.core.types import VersionCategory

    config = build_config()
    if not config.ledger_path.exists():
        click.echo("No update has run yet.")
        return

    with VersionLedger(config.ledger_path) as ledger:
        click.echo(f"Cache: {config.home_dir}")
        click.echo(f"Last update check: {_format_timestamp(ledger.get_last_update())}")
        click.echo(f"Last resource check: {_format_timestamp(ledger.get_last_skin_update())}")
        for artifact in config.artifacts:
            click.echo(f"  {artifact.key}: {ledger.get_version(artifact.key)}")
        resources = ledger.versions(VersionCategory.RESOURCE)
        for path, version in resources.items():
            click.echo(f"  {path}: {version}")
