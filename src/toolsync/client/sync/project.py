"""Applying cached artifacts to consuming projects."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from toolsync.client.state import MISSING_VERSION, ProjectVersionStamp
from toolsync.client.sync.replace import AtomicReplacer, staged_path
from toolsync.core.config import UpdaterConfig

logger = logging.getLogger(__name__)


class ProjectSynchronizer:
    """Copies ledger-approved artifacts from the cache into a project."""

    def __init__(self, config: UpdaterConfig, replacer: AtomicReplacer) -> None:
        self._config = config
        self._replacer = replacer

    def sync(
        self,
        project_dir: Path,
        ledger: Mapping[str, str],
        stamp: ProjectVersionStamp,
    ) -> list[str]:
        """Bring one project up to the cached versions.

        Artifacts missing from the cache are skipped with a warning. When a
        cache file still waits for its deferred swap, the staged copy is
        used. The stamp is saved once at the end, and only if something
        changed.

        Args:
            project_dir: Project root.
            ledger: Versions installed in the cache.
            stamp: Versions already applied to this project.

        Returns:
            Keys of the artifacts copied into the project.
        """
        changed: list[str] = []
        for artifact in self._config.artifacts:
            if artifact.project_path is None:
                continue
            version = ledger.get(artifact.key, MISSING_VERSION)
            if stamp.get_version(artifact.key) == version:
                continue

            source = self._config.cache_path(artifact)
            destination = project_dir / artifact.project_path
            # A pending swap means the staged copy holds the recorded version
            if staged_path(source).exists():
                source = staged_path(source)
            if not source.exists():
                logger.warning(f"File not found: {source}, skipping {artifact.key} for {destination}")
                continue

            logger.info(f"Updating the file: {destination}")
            try:
                self._replacer.install(source.read_bytes(), destination)
            except OSError as e:
                logger.error(f"Failed to update {artifact.key} at {destination}: {e}")
                continue
            stamp.set_version(artifact.key, version)
            changed.append(artifact.key)

        if changed:
            stamp.save()
        return changed
