"""Swap helper command for the toolsync CLI.

Started detached by the updater when an artifact is locked; see
toolsync.client.sync.replace.launch_swap_helper.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from toolsync.client.cli.logs import setup_logging


@click.command()
@click.argument("staged", type=click.Path(path_type=Path))
@click.argument("destination", type=click.Path(path_type=Path))
def swap(staged: Path, destination: Path) -> None:
    """Replace DESTINATION with STAGED once DESTINATION is released."""
    from toolsync.client.sync.swap import swap_with_retry

    setup_logging(verbose=True)
    if not swap_with_retry(staged, destination):
        sys.exit(1)
