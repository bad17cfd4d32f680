"""Atomic replacement of artifacts that may be in use.

This module provides:
- AtomicReplacer: Writes bytes to a destination, staging them next to it
  when the destination is locked
- launch_swap_helper: Starts the detached process that finishes a staged
  replacement
"""

from __future__ import annotations

import logging
import subprocess
import sys
import tempfile
from collections.abc import Callable, Iterable
from pathlib import Path

from toolsync.core.types import InstallOutcome

logger = logging.getLogger(__name__)

STAGED_SUFFIX = ".new"
SWAP_LOG_PREFIX = "UpdaterLog"

SwapLauncher = Callable[[Path, Path], None]


def staged_path(destination: Path) -> Path:
    """Get the sibling path new content is staged at."""
    return destination.with_suffix(STAGED_SUFFIX)


def _write_file(path: Path, data: bytes) -> None:
    with open(path, "wb") as f:
        f.write(data)


def _python_executable() -> str:
    """Get the interpreter for the helper, windowless on Windows."""
    exe = Path(sys.executable)
    if sys.platform == "win32":
        windowed = exe.with_name("pythonw.exe")
        if windowed.exists():
            return str(windowed)
    return str(exe)


def launch_swap_helper(staged: Path, destination: Path) -> None:
    """Start a detached process that swaps staged onto destination.

    The helper's output goes to its own UpdaterLog*.log file in the temp
    directory. The parent does not wait for it or look at its exit status.

    Args:
        staged: File holding the new content.
        destination: Locked file to replace.
    """
    command = [
        _python_executable(),
        "-m",
        "toolsync.client.cli",
        "swap",
        str(staged),
        str(destination),
    ]
    if sys.platform == "win32":
        detach = {
            "creationflags": subprocess.DETACHED_PROCESS
            | subprocess.CREATE_NEW_PROCESS_GROUP
        }
    else:
        detach = {"start_new_session": True}

    with tempfile.NamedTemporaryFile(
        prefix=SWAP_LOG_PREFIX, suffix=".log", delete=False
    ) as log:
        subprocess.Popen(
            command,
            stdin=subprocess.DEVNULL,
            stdout=log,
            stderr=subprocess.STDOUT,
            close_fds=True,
            **detach,
        )
    logger.info(f"Scheduled replacement of {destination}, helper log: {log.name}")


class AtomicReplacer:
    """Writes artifact bytes, deferring the swap when the target is locked."""

    def __init__(
        self,
        protected: Iterable[Path] = (),
        launch_swap: SwapLauncher = launch_swap_helper,
    ) -> None:
        """Initialize the replacer.

        Args:
            protected: Files that must never get a swap helper (the updater's
                own executable); their staged copy is picked up on restart.
            launch_swap: Starts the deferred swap for a staged file.
        """
        self._protected = {Path(p).resolve() for p in protected}
        self._launch_swap = launch_swap

    def is_protected(self, destination: Path) -> bool:
        return destination.resolve() in self._protected

    def install(self, data: bytes, destination: Path) -> InstallOutcome:
        """Write data to destination.

        Contention on the destination is never raised to the caller: the
        bytes are staged at a sibling path and a helper process is scheduled
        to complete the swap.

        Args:
            data: New content.
            destination: File to create or replace.

        Returns:
            InstallOutcome.INSTALLED if the destination was written directly,
            InstallOutcome.DEFERRED if the content was staged instead. A
            deferred destination still holds the old content for now.

        Raises:
            OSError: If even the staged copy cannot be written.
        """
        destination.parent.mkdir(parents=True, exist_ok=True)
        try:
            _write_file(destination, data)
            return InstallOutcome.INSTALLED
        except OSError as e:
            logger.warning(f"{destination} appears locked ({e})")

        staged = staged_path(destination)
        logger.info(f"Writing new file as {staged}")
        _write_file(staged, data)

        if self.is_protected(destination):
            logger.info(f"{destination} is the running updater; it will pick up {staged} on restart")
            return InstallOutcome.DEFERRED

        try:
            self._launch_swap(staged, destination)
        except OSError as e:
            logger.error(
                f"Could not start swap helper for {destination}: {e}; "
                f"staged content stays at {staged}"
            )
        return InstallOutcome.DEFERRED
