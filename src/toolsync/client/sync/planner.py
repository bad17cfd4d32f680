"""Sync planning: which artifacts are stale."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from toolsync.client.state import MISSING_VERSION
from toolsync.client.sync.types import PendingInstall
from toolsync.core.config import UPDATER_KEY, UPDATER_VERSION, Artifact, UpdaterConfig


def is_stale(key: str, local: Mapping[str, str], remote: Mapping[str, str]) -> bool:
    """Versions are opaque tokens: any difference means stale."""
    return local.get(key, MISSING_VERSION) != remote.get(key, MISSING_VERSION)


def plan(
    local: Mapping[str, str],
    remote: Mapping[str, str],
    config: UpdaterConfig,
    artifacts: Iterable[Artifact] | None = None,
) -> list[PendingInstall]:
    """Compute the downloads needed to bring the cache up to date.

    Args:
        local: Versions recorded in the ledger.
        remote: Versions from the remote manifest.
        config: Supplies artifact URLs and cache paths.
        artifacts: Artifacts to consider, defaults to config.artifacts
            (the fixed table followed by the platform bundle).

    Returns:
        Pending installs in artifact table order.
    """
    pending: list[PendingInstall] = []
    for artifact in artifacts if artifacts is not None else config.artifacts:
        if not is_stale(artifact.key, local, remote):
            continue
        pending.append(PendingInstall(
            artifact=artifact,
            url=config.artifact_url(artifact),
            destination=config.cache_path(artifact),
            version=remote.get(artifact.key, MISSING_VERSION),
        ))
    return pending


def updater_outdated(remote: Mapping[str, str]) -> bool:
    """Check whether the manifest announces a different updater.

    A manifest without an Updater key never triggers a self-update.
    """
    announced = remote.get(UPDATER_KEY)
    return announced is not None and announced != UPDATER_VERSION
