"""Command-line interface for toolsync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- update: Refresh the toolchain cache and apply it to projects
- status: Show installed versions
- swap: Finish a deferred replacement (run by the updater itself)
"""

from __future__ import annotations

import click

from toolsync.client.cli.config import (
    build_config,
    get_config_dir,
    get_config_file,
    load_config,
    save_config,
)
from toolsync.client.cli.swap import swap
from toolsync.client.cli.update import status, update


@click.group()
@click.version_option(package_name="toolsync")
def cli() -> None:
    """toolsync - Keep a development toolchain and its projects up to date."""


cli.add_command(update)
cli.add_command(status)
cli.add_command(swap)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "main",
    "build_config",
    "get_config_dir",
    "get_config_file",
    "load_config",
    "save_config",
]
