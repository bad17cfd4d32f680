"""Deferred swap of a staged file onto a locked destination.

Runs in a detached helper process started by the replacer. The helper owns
one job: replace the destination with the staged file, retrying until the
process holding the destination lets go or the retry budget runs out. It
never takes the run lock and only installs the bytes it was given, so an old
helper overlapping a newer run is harmless.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from toolsync.client.sync.retry import RetryPolicy, Sleep

logger = logging.getLogger(__name__)

SETTLE_DELAY = 1.0  # seconds before the first attempt
SWAP_POLICY = RetryPolicy(max_attempts=30, initial_backoff=2.0, max_backoff=60.0)


def _try_swap(staged: Path, destination: Path) -> bool:
    """Make one attempt at replacing destination with staged."""
    if not staged.exists():
        if destination.exists():
            logger.info(f"{staged} already moved into place")
            return True
        logger.warning(f"Neither {staged} nor {destination} exists")
        return False

    if destination.exists():
        try:
            destination.unlink()
        except OSError as e:
            logger.info(f"{destination} is still in use: {e}")
            return False

    try:
        staged.rename(destination)
    except OSError as e:
        logger.info(f"Renaming {staged} to {destination} failed: {e}")
        return False

    return destination.exists()


def swap_with_retry(
    staged: Path,
    destination: Path,
    policy: RetryPolicy = SWAP_POLICY,
    settle_delay: float = SETTLE_DELAY,
    sleep: Sleep = time.sleep,
) -> bool:
    """Replace destination with staged, retrying with backoff.

    Args:
        staged: File holding the new content.
        destination: File to replace.
        policy: Attempt budget and backoff schedule.
        settle_delay: Wait before the first attempt, giving the parent
            process time to exit.
        sleep: Function used to wait.

    Returns:
        True once the destination holds the staged content, False if the
        retry budget ran out.
    """
    logger.info(f"Waiting to replace {destination} with {staged}")
    sleep(settle_delay)

    delays = policy.delays()
    for attempt in range(1, policy.max_attempts + 1):
        if _try_swap(staged, destination):
            logger.info(f"Replaced {destination} (attempt {attempt})")
            return True

        delay = next(delays, None)
        if delay is None:
            break
        logger.info(
            f"Attempt {attempt}/{policy.max_attempts} failed, retrying in {delay:.1f}s"
        )
        sleep(delay)

    logger.error(
        f"Giving up on {destination} after {policy.max_attempts} attempts; "
        f"new content left at {staged}"
    )
    return False
