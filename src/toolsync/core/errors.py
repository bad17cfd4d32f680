"""Exception hierarchy for toolsync."""

from __future__ import annotations

from pathlib import Path


class UpdateError(Exception):
    """Base exception for update errors."""


class NetworkError(UpdateError):
    """A request failed at the transport level or with an HTTP error."""

    def __init__(self, message: str, url: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class IntegrityError(UpdateError):
    """Downloaded bytes do not match what the server announced."""


class SecurityError(UpdateError):
    """An archive entry would be written outside its target directory."""


class ManifestError(UpdateError):
    """A manifest or catalog document could not be parsed."""


class RunInProgressError(UpdateError):
    """Another update run holds the run lock."""

    def __init__(self, lock_path: Path) -> None:
        self.lock_path = lock_path
        super().__init__(f"Another update run is in progress (lock file: {lock_path})")


class InstallError(UpdateError):
    """Installing a single artifact failed.

    Attributes:
        key: Artifact key (or resource path) that failed.
        destination: Path the artifact was meant to land at.
        cause: Underlying error.
    """

    def __init__(self, key: str, destination: Path, cause: Exception) -> None:
        self.key = key
        self.destination = destination
        self.cause = cause
        super().__init__(f"Failed to install {key} to {destination}: {cause}")
