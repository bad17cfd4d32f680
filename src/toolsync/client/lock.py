"""Run lock for update runs.

Only one update run may work on the shared cache at a time. The lock is a
marker file; its existence plus modification time say "a run is in
progress". A marker older than the staleness threshold belongs to a run that
died without cleaning up and is reclaimed.
"""

from __future__ import annotations

import atexit
import contextlib
import logging
import os
import time
from collections.abc import Callable
from pathlib import Path

from toolsync.core.types import LockStatus

logger = logging.getLogger(__name__)


class RunLock:
    """File-based mutual exclusion for a whole update run.

    Use as a context manager or call acquire()/release(). Release is also
    registered with atexit, so the marker is removed on interpreter shutdown
    even if the caller never reaches release().
    """

    def __init__(
        self,
        path: Path,
        stale_after: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the lock.

        Args:
            path: Marker file location.
            stale_after: Seconds after which an existing marker is reclaimed.
            clock: Returns the current time in epoch seconds.
        """
        self.path = Path(path)
        self._stale_after = stale_after
        self._clock = clock
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def is_stale(self) -> bool:
        """Check whether the current marker is older than the threshold."""
        try:
            mtime = self.path.stat().st_mtime
        except FileNotFoundError:
            return True
        return mtime < self._clock() - self._stale_after

    def acquire(self) -> LockStatus:
        """Try to take the lock.

        Returns:
            LockStatus.LOCKED if this process now owns the marker,
            LockStatus.BUSY if a live run holds it.
        """
        if self._held:
            return LockStatus.LOCKED

        self.path.parent.mkdir(parents=True, exist_ok=True)
        if self.path.exists():
            if not self.is_stale():
                logger.info(f"Update process in progress, lock file exists at: {self.path}")
                return LockStatus.BUSY
            logger.warning(f"Reclaiming stale lock file {self.path}")
            with contextlib.suppress(FileNotFoundError):
                self.path.unlink()

        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            # Another run created it between our check and our create
            logger.info(f"Lost race for lock file {self.path}")
            return LockStatus.BUSY
        with os.fdopen(fd, "w") as f:
            f.write(str(os.getpid()))

        self._held = True
        atexit.register(self.release)
        logger.debug(f"Acquired run lock {self.path}")
        return LockStatus.LOCKED

    def release(self) -> None:
        """Remove the marker if this process owns it."""
        if not self._held:
            return
        self._held = False
        atexit.unregister(self.release)
        with contextlib.suppress(FileNotFoundError):
            self.path.unlink()
        logger.debug(f"Released run lock {self.path}")

    def __enter__(self) -> LockStatus:
        return self.acquire()

    def __exit__(self, *args: object) -> None:
        self.release()
