"""Configuration classes for toolsync.

This module defines the immutable run configuration and the fixed table of
artifacts the updater manages. A single UpdaterConfig is built when the
process starts and handed to every component.
"""

from __future__ import annotations

import platform
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

# Version of this updater; compared against the manifest's "Updater" key
UPDATER_VERSION = "4"
UPDATER_KEY = "Updater"

DAY = 24 * 60 * 60.0  # seconds
MINUTE = 60.0

DEFAULT_BASE_URL = "https://www.codenameone.com/files/updates/"
DEFAULT_SKIN_BASE_URL = "https://www.codenameone.com/OTA"
DEFAULT_USER_AGENT = "toolsync/" + UPDATER_VERSION
DEFAULT_MAX_ARTIFACT_SIZE = 512 * 1024 * 1024


@dataclass(frozen=True)
class Artifact:
    """A named, versioned file the updater keeps current.

    Attributes:
        key: Manifest key holding the artifact's version token.
        filename: Remote file name under the base URL, also the cache name.
        project_path: Path relative to a project root where the artifact is
            copied, or None for cache-only artifacts.
        extract_dir: For bundles, the cache directory the archive is
            extracted into.
    """

    key: str
    filename: str
    project_path: str | None = None
    extract_dir: str | None = None


ARTIFACTS: tuple[Artifact, ...] = (
    Artifact("JavaSEJar", "JavaSE.jar", "JavaSE.jar"),
    Artifact("CodeNameOneBuildClientJar", "CodeNameOneBuildClient.jar", "CodeNameOneBuildClient.jar"),
    Artifact("CLDC11Jar", "CLDC11.jar", "lib/CLDC11.jar"),
    Artifact("CodenameOneJar", "CodenameOne.jar", "lib/CodenameOne.jar"),
    Artifact("CodenameOne_SRCzip", "CodenameOne_SRC.zip", "lib/CodenameOne_SRC.zip"),
    Artifact("designer", "designer_1.jar"),
    Artifact("guiBuilder", "guibuilder.jar"),
)

PLATFORM_BUNDLES: dict[str, Artifact] = {
    "windows": Artifact("WindowsBundleZip", "win_bundle.zip", extract_dir="bundle-win"),
    "mac": Artifact("MacBundleZip", "mac_bundle.zip", extract_dir="bundle-mac"),
    "linux": Artifact("LinuxBundleZip", "linux_bundle.zip", extract_dir="bundle-linux"),
}

UPDATER_FILENAME = "UpdateCodenameOne.jar"


def detect_os_family(system: str | None = None) -> str | None:
    """Map platform.system() onto one of the bundle families.

    Args:
        system: Override for platform.system() (used by tests).

    Returns:
        "windows", "mac", "linux", or None for anything else.
    """
    name = (system if system is not None else platform.system()).lower()
    if name.startswith("win"):
        return "windows"
    if name == "darwin":
        return "mac"
    if name == "linux":
        return "linux"
    return None


def platform_bundle(system: str | None = None) -> Artifact | None:
    """Get the bundle artifact for the running OS family, if any."""
    family = detect_os_family(system)
    if family is None:
        return None
    return PLATFORM_BUNDLES[family]


@dataclass(frozen=True)
class UpdaterConfig:
    """Immutable settings for one updater process.

    Attributes:
        home_dir: Per-user directory holding the cache, ledger and lock.
        base_url: URL prefix for the manifest and every artifact.
        skin_base_url: URL prefix for the resource catalog and resources.
        timeout: Per-request timeout in seconds.
        user_agent: User-Agent header sent with every request.
        max_artifact_size: Downloads larger than this are rejected.
        lock_stale_after: Age in seconds after which a run lock is reclaimed.
        update_interval: Minimum seconds between manifest checks.
        skin_update_interval: Minimum seconds between catalog checks.
        manifest_retries: Retry attempts for the manifest fetch.
        bundle: Platform bundle artifact resolved at startup.
    """

    home_dir: Path
    base_url: str = DEFAULT_BASE_URL
    skin_base_url: str = DEFAULT_SKIN_BASE_URL
    timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    max_artifact_size: int = DEFAULT_MAX_ARTIFACT_SIZE
    lock_stale_after: float = 20 * MINUTE
    update_interval: float = DAY
    skin_update_interval: float = DAY
    manifest_retries: int = 3
    bundle: Artifact | None = field(default_factory=platform_bundle)

    def __post_init__(self) -> None:
        """Normalize paths and URLs."""
        object.__setattr__(self, "home_dir", Path(self.home_dir).expanduser())
        if not self.base_url.endswith("/"):
            object.__setattr__(self, "base_url", self.base_url + "/")
        object.__setattr__(self, "skin_base_url", self.skin_base_url.rstrip("/"))

    @classmethod
    def from_dict(cls, home_dir: Path, data: dict[str, Any]) -> UpdaterConfig:
        """Build a config from a home directory and user overrides.

        Unknown keys are ignored so older config files keep working.

        Args:
            home_dir: Per-user updater directory.
            data: Overrides, typically loaded from toolsync.json.

        Returns:
            The resulting configuration.
        """
        known = {f.name for f in fields(cls)} - {"home_dir", "bundle"}
        overrides = {k: v for k, v in data.items() if k in known}
        return cls(home_dir=home_dir, **overrides)

    @property
    def ledger_path(self) -> Path:
        return self.home_dir / "UpdateStatus.db"

    @property
    def lock_path(self) -> Path:
        return self.home_dir / "UpdateStatus.lock"

    @property
    def log_path(self) -> Path:
        return self.home_dir / "toolsync.log"

    @property
    def skin_dir(self) -> Path:
        return self.home_dir

    @property
    def updater_path(self) -> Path:
        return self.home_dir / UPDATER_FILENAME

    @property
    def staged_updater_path(self) -> Path:
        """Where a new updater is staged; the launcher swaps it in."""
        return self.updater_path.with_suffix(".new")

    @property
    def manifest_url(self) -> str:
        return self.base_url + "UpdateStatus.properties"

    @property
    def updater_url(self) -> str:
        return self.base_url + UPDATER_FILENAME

    @property
    def catalog_url(self) -> str:
        return self.skin_base_url + "/Skins.xml"

    def artifact_url(self, artifact: Artifact) -> str:
        """Get the download URL of an artifact."""
        return self.base_url + artifact.filename

    def resource_url(self, path: str) -> str:
        """Get the download URL of a catalog resource."""
        return f"{self.skin_base_url}/{path.lstrip('/')}"

    def cache_path(self, artifact: Artifact) -> Path:
        """Get the shared cache location of an artifact."""
        return self.home_dir / artifact.filename

    @property
    def artifacts(self) -> tuple[Artifact, ...]:
        """Fixed artifact table plus the platform bundle, in plan order."""
        if self.bundle is None:
            return ARTIFACTS
        return (*ARTIFACTS, self.bundle)
