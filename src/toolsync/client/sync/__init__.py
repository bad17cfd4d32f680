"""Update operations for the shared cache and consuming projects.

Architecture:
    RunLock → VersionLedger → UpdateClient.fetch_manifest → plan
    → ArtifactDownloader → AtomicReplacer → ProjectSynchronizer

Components:
- **plan**: Diffs ledger against manifest into PendingInstall records
- **ArtifactDownloader**: Fetches artifact bytes and installs them
- **AtomicReplacer**: Direct write, or staged write + detached swap helper
- **swap_with_retry**: Bounded retry loop run by the swap helper
- **install_archive**: Clears and repopulates a bundle directory
- **ProjectSynchronizer**: Copies cached artifacts into project trees
- **UpdateEngine / run_update**: Coordinates a whole run
"""

from toolsync.client.sync.archive import clear_directory, install_archive, resolve_entry
from toolsync.client.sync.download import ArtifactDownloader
from toolsync.client.sync.engine import UpdateEngine, run_update
from toolsync.client.sync.planner import is_stale, plan, updater_outdated
from toolsync.client.sync.project import ProjectSynchronizer
from toolsync.client.sync.replace import (
    STAGED_SUFFIX,
    AtomicReplacer,
    launch_swap_helper,
    staged_path,
)
from toolsync.client.sync.retry import (
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_INITIAL_BACKOFF,
    DEFAULT_MAX_BACKOFF,
    DEFAULT_MAX_RETRIES,
    RetryPolicy,
    retry_with_backoff,
)
from toolsync.client.sync.swap import SWAP_POLICY, swap_with_retry
from toolsync.client.sync.types import (
    CatalogEntry,
    InstallError,
    IntegrityError,
    ManifestError,
    NetworkError,
    PendingInstall,
    RunInProgressError,
    RunReport,
    SecurityError,
    UpdateError,
)

__all__ = [
    # Archive
    "clear_directory",
    "install_archive",
    "resolve_entry",
    # Download / replace
    "ArtifactDownloader",
    "AtomicReplacer",
    "STAGED_SUFFIX",
    "launch_swap_helper",
    "staged_path",
    # Engine
    "UpdateEngine",
    "run_update",
    # Planning
    "is_stale",
    "plan",
    "updater_outdated",
    # Projects
    "ProjectSynchronizer",
    # Retry
    "DEFAULT_BACKOFF_MULTIPLIER",
    "DEFAULT_INITIAL_BACKOFF",
    "DEFAULT_MAX_BACKOFF",
    "DEFAULT_MAX_RETRIES",
    "RetryPolicy",
    "retry_with_backoff",
    # Swap helper
    "SWAP_POLICY",
    "swap_with_retry",
    # Types
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
