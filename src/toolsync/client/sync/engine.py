"""Update engine coordinating a full update run.

This module provides:
- UpdateEngine: Brings the shared cache, the resources and the projects up
  to date
- run_update: Runs the engine under the run lock
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from toolsync.client.lock import RunLock
from toolsync.client.state import ProjectVersionStamp, VersionLedger
from toolsync.client.sync.archive import resolve_entry
from toolsync.client.sync.download import ArtifactDownloader
from toolsync.client.sync.planner import plan, updater_outdated
from toolsync.client.sync.project import ProjectSynchronizer
from toolsync.client.sync.replace import AtomicReplacer
from toolsync.client.sync.types import (
    InstallError,
    RunInProgressError,
    RunReport,
    SecurityError,
    UpdateError,
)
from toolsync.core.config import UPDATER_KEY
from toolsync.core.types import InstallOutcome, LockStatus, VersionCategory

if TYPE_CHECKING:
    from toolsync.client.api import UpdateClient
    from toolsync.core.config import UpdaterConfig

logger = logging.getLogger(__name__)


class UpdateEngine:
    """Coordinates one update run.

    Ledger entries are written right after each artifact lands, including
    deferred ones: a deferred swap is expected to converge, so the ledger may
    briefly claim a version whose bytes still sit in the staged file.
    """

    def __init__(
        self,
        config: UpdaterConfig,
        client: UpdateClient,
        ledger: VersionLedger,
        replacer: AtomicReplacer | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the update engine.

        Args:
            config: Updater configuration.
            client: HTTP client for the update server.
            ledger: Version ledger of the shared cache.
            replacer: Writes artifacts; defaults to one protecting the
                updater's own executable.
            clock: Returns the current time in epoch seconds.
        """
        self._config = config
        self._client = client
        self._ledger = ledger
        self._replacer = replacer or AtomicReplacer(protected=[config.updater_path])
        self._clock = clock
        self._downloader = ArtifactDownloader(client, self._replacer, config.home_dir)
        self._projects = ProjectSynchronizer(config, self._replacer)

    def manifest_due(self, force: bool = False) -> bool:
        """Check whether the manifest throttle allows a check now."""
        last = self._ledger.get_last_update()
        return force or last < self._clock() - self._config.update_interval

    def skins_due(self) -> bool:
        """Check whether the resource catalog throttle allows a check now."""
        last = self._ledger.get_last_skin_update()
        return last < self._clock() - self._config.skin_update_interval

    def run(self, projects: Iterable[Path] = (), force: bool = False) -> RunReport:
        """Perform a full update run.

        Args:
            projects: Project roots to bring up to date.
            force: Check the manifest even if it was checked recently.

        Returns:
            RunReport describing what changed.

        Raises:
            NetworkError: If the manifest cannot be fetched. Artifacts
                installed before the failure stay recorded.
        """
        report = RunReport()

        if self.manifest_due(force):
            self.sync_artifacts(report)
        else:
            logger.info("Manifest checked recently, skipping")

        if self.skins_due():
            self.sync_resources(report)

        for project in projects:
            self.sync_project(Path(project), report)

        return report

    # === Shared cache ===

    def sync_artifacts(self, report: RunReport) -> None:
        """Fetch the manifest and install every stale artifact."""
        manifest = self._client.fetch_manifest()
        report.manifest_checked = True

        if updater_outdated(manifest):
            self._stage_updater(report)

        pending = plan(self._ledger.versions(), manifest, self._config)
        if not pending:
            logger.info("All artifacts are up to date")

        for item in pending:
            logger.info(f"Checking: {item.artifact.filename}")
            try:
                outcome = self._downloader.install(item)
            except InstallError as e:
                logger.error(str(e))
                report.failed.append(item.key)
                continue

            self._ledger.set_version(item.key, item.version)
            if outcome is InstallOutcome.DEFERRED:
                report.deferred.append(item.key)
            else:
                report.installed.append(item.key)

        if not report.failed:
            self._ledger.set_last_update(self._clock())

    def _stage_updater(self, report: RunReport) -> None:
        destination = self._config.staged_updater_path
        logger.info(f"New updater available, staging it at {destination}")
        # Already the staged location, so the replacer fallback does not apply
        try:
            data = self._client.download(self._config.updater_url)
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(data)
        except (UpdateError, OSError) as e:
            logger.error(f"Failed to stage the new updater at {destination}: {e}")
            report.failed.append(UPDATER_KEY)
            return
        report.updater_staged = True

    # === Resources ===

    def sync_resources(self, report: RunReport) -> None:
        """Refresh resources listed in the catalog that exist locally.

        Resources that are not present locally are never downloaded.
        """
        try:
            catalog = self._client.fetch_catalog()
        except UpdateError as e:
            logger.error(f"Resource catalog unavailable: {e}")
            report.failed.append(self._config.catalog_url)
            return
        report.skins_checked = True

        skin_dir = self._config.skin_dir.resolve()
        failures = 0
        for entry in catalog:
            try:
                local_path = resolve_entry(skin_dir, entry.path.lstrip("/"))
            except SecurityError as e:
                logger.warning(f"Ignoring catalog entry: {e}")
                continue
            if local_path is None or not local_path.exists():
                continue
            if self._ledger.get_resource_version(entry.path) == entry.version:
                continue

            logger.info(f"Downloading resource {entry.path} (version {entry.version})")
            try:
                self._downloader.fetch(
                    self._config.resource_url(entry.path), local_path, entry.path
                )
            except InstallError as e:
                logger.error(str(e))
                report.failed.append(entry.path)
                failures += 1
                continue
            self._ledger.set_resource_version(entry.path, entry.version)
            report.resources.append(entry.path)

        if failures == 0:
            self._ledger.set_last_skin_update(self._clock())

    # === Projects ===

    def sync_project(self, project_dir: Path, report: RunReport) -> list[str]:
        """Apply cached artifacts to one project."""
        stamp = ProjectVersionStamp(project_dir)
        changed = self._projects.sync(
            project_dir,
            self._ledger.versions(VersionCategory.ARTIFACT),
            stamp,
        )
        report.project_updates[str(project_dir)] = changed
        return changed


def run_update(
    config: UpdaterConfig,
    client: UpdateClient,
    projects: Iterable[Path] = (),
    force: bool = False,
    replacer: AtomicReplacer | None = None,
    clock: Callable[[], float] = time.time,
) -> RunReport:
    """Run a full update under the run lock.

    Args:
        config: Updater configuration.
        client: HTTP client for the update server.
        projects: Project roots to bring up to date.
        force: Check the manifest even if it was checked recently.
        replacer: Optional replacer override.
        clock: Returns the current time in epoch seconds.

    Returns:
        RunReport describing what changed.

    Raises:
        RunInProgressError: If another run holds the lock. The ledger is not
            opened in that case.
        NetworkError: If the manifest cannot be fetched.
    """
    lock = RunLock(config.lock_path, config.lock_stale_after, clock=clock)
    with lock as status:
        if status is LockStatus.BUSY:
            raise RunInProgressError(config.lock_path)
        with VersionLedger(config.ledger_path) as ledger:
            engine = UpdateEngine(config, client, ledger, replacer=replacer, clock=clock)
            return engine.run(projects, force=force)
