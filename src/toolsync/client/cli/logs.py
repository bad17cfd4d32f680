"""Logging setup for CLI commands."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_path: Path | None = None, verbose: bool = False) -> None:
    """Configure logging to stdout and, optionally, a log file.

    Args:
        log_path: Log file receiving INFO and above, or None for stdout only.
        verbose: Show INFO messages on stdout instead of warnings only.
    """
    formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger("toolsync")
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    stdout_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root_logger.addHandler(stdout_handler)

    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.INFO)
        root_logger.addHandler(file_handler)
