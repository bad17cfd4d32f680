"""Core module - Configuration, artifact table, errors and shared types."""

from toolsync.core.config import (
    ARTIFACTS,
    PLATFORM_BUNDLES,
    UPDATER_KEY,
    UPDATER_VERSION,
    Artifact,
    UpdaterConfig,
    detect_os_family,
    platform_bundle,
)
from toolsync.core.errors import (
    InstallError,
    IntegrityError,
    ManifestError,
    NetworkError,
    RunInProgressError,
    SecurityError,
    UpdateError,
)
from toolsync.core.types import CatalogEntry, InstallOutcome, LockStatus, VersionCategory

__all__ = [
    # Config
    "ARTIFACTS",
    "Artifact",
    "PLATFORM_BUNDLES",
    "UPDATER_KEY",
    "UPDATER_VERSION",
    "UpdaterConfig",
    "detect_os_family",
    "platform_bundle",
    # Errors
    "InstallError",
    "IntegrityError",
    "ManifestError",
    "NetworkError",
    "RunInProgressError",
    "SecurityError",
    "UpdateError",
    # Types
    "CatalogEntry",
    "InstallOutcome",
    "LockStatus",
    "VersionCategory",
]
