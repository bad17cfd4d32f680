"""Shared types for toolsync."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class CatalogEntry:
    """A resource listed in the remote catalog.

    The path doubles as the resource's identity and its location below both
    the resource base URL and the local resource directory.
    """

    path: str
    version: int = 0


class InstallOutcome(Enum):
    """Result of writing bytes to a destination."""

    INSTALLED = "installed"  # Destination holds the new bytes
    DEFERRED = "deferred"  # Bytes staged; a swap helper finishes the job


class LockStatus(Enum):
    """Result of trying to take the run lock."""

    LOCKED = "locked"
    BUSY = "busy"


class VersionCategory(Enum):
    """Kinds of versioned entries kept in the ledger.

    Artifacts are required and tracked for every key; resources are optional
    and only tracked once present locally.
    """

    ARTIFACT = "artifact"
    RESOURCE = "resource"
