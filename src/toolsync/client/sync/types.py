"""Shared types and dataclasses for update runs.

This module provides:
- PendingInstall: One planned download
- RunReport: Overall result of an update run
- Exception classes, re-exported from toolsync.core.errors
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from toolsync.core.config import Artifact
from toolsync.core.errors import (
    InstallError,
    IntegrityError,
    ManifestError,
    NetworkError,
    RunInProgressError,
    SecurityError,
    UpdateError,
)
from toolsync.core.types import CatalogEntry

__all__ = [
    "CatalogEntry",
    "InstallError",
    "IntegrityError",
    "ManifestError",
    "NetworkError",
    "PendingInstall",
    "RunInProgressError",
    "RunReport",
    "SecurityError",
    "UpdateError",
]


@dataclass(frozen=True)
class PendingInstall:
    """A stale artifact scheduled for download.

    Attributes:
        artifact: Artifact being refreshed.
        url: Where to fetch it from.
        destination: Cache path the bytes are written to.
        version: Remote version token recorded once installed.
    """

    artifact: Artifact
    url: str
    destination: Path
    version: str

    @property
    def key(self) -> str:
        return self.artifact.key


@dataclass
class RunReport:
    """Result of an update run."""

    manifest_checked: bool = False
    skins_checked: bool = False
    updater_staged: bool = False
    installed: list[str] = field(default_factory=list)
    deferred: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    resources: list[str] = field(default_factory=list)
    project_updates: dict[str, list[str]] = field(default_factory=dict)

    @property
    def has_failures(self) -> bool:
        """Check if anything failed to install."""
        return len(self.failed) > 0

    @property
    def project_files_changed(self) -> bool:
        return any(self.project_updates.values())
