"""Artifact download and installation.

This module provides:
- ArtifactDownloader: Fetches one artifact and hands it to the replacer
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from toolsync.client.sync.archive import install_archive
from toolsync.client.sync.types import InstallError, PendingInstall, UpdateError
from toolsync.core.types import InstallOutcome

if TYPE_CHECKING:
    from toolsync.client.api import UpdateClient
    from toolsync.client.sync.replace import AtomicReplacer

logger = logging.getLogger(__name__)


class ArtifactDownloader:
    """Downloads artifacts and installs them into the shared cache."""

    def __init__(
        self,
        client: UpdateClient,
        replacer: AtomicReplacer,
        extract_root: Path,
    ) -> None:
        """Initialize the downloader.

        Args:
            client: HTTP client for the update server.
            replacer: Writes bytes to their destination.
            extract_root: Directory bundle extraction dirs live under.
        """
        self._client = client
        self._replacer = replacer
        self._extract_root = extract_root

    def fetch(self, url: str, destination: Path, key: str) -> InstallOutcome:
        """Download url and install it at destination.

        Raises:
            InstallError: If the download or the write fails.
        """
        try:
            data = self._client.download(url)
            outcome = self._replacer.install(data, destination)
        except (UpdateError, OSError) as e:
            raise InstallError(key, destination, e) from e
        if outcome is InstallOutcome.DEFERRED:
            logger.info(f"{destination} is in use; replacement deferred")
        return outcome

    def install(self, pending: PendingInstall) -> InstallOutcome:
        """Download a pending artifact into the cache.

        Bundles are additionally extracted into their own directory, which
        is cleared first.

        Args:
            pending: Planned install.

        Returns:
            How the cache file was written.

        Raises:
            InstallError: If any step fails; the ledger must not be updated.
        """
        logger.info(f"Updating {pending.key} to version {pending.version}")
        try:
            data = self._client.download(pending.url)
            outcome = self._replacer.install(data, pending.destination)
            if pending.artifact.extract_dir:
                install_archive(data, self._extract_root / pending.artifact.extract_dir)
        except (UpdateError, OSError) as e:
            raise InstallError(pending.key, pending.destination, e) from e

        if outcome is InstallOutcome.DEFERRED:
            logger.info(f"{pending.destination} is in use; replacement deferred")
        return outcome
