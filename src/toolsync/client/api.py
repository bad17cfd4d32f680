"""HTTP client for the update server.

This module provides:
- UpdateClient: HTTP client fetching the manifest, the resource catalog and
  artifact bytes
"""

from __future__ import annotations

import logging
import time

import httpx

from toolsync.client.manifest import parse_catalog, parse_properties
from toolsync.client.sync.retry import Sleep, retry_with_backoff
from toolsync.core.config import UpdaterConfig
from toolsync.core.errors import IntegrityError, NetworkError
from toolsync.core.types import CatalogEntry

logger = logging.getLogger(__name__)


class UpdateClient:
    """HTTP client for the update server."""

    def __init__(
        self,
        config: UpdaterConfig,
        transport: httpx.BaseTransport | None = None,
        sleep: Sleep = time.sleep,
    ) -> None:
        """Initialize the update client.

        Args:
            config: Updater configuration (URLs, timeout, user agent, limits).
            transport: Optional httpx transport, mainly for tests.
            sleep: Function used to wait between manifest retries.
        """
        self._config = config
        self._sleep = sleep
        self._client = httpx.Client(
            timeout=config.timeout,
            headers={"User-Agent": config.user_agent},
            follow_redirects=True,
            transport=transport,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> UpdateClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()

    def _get(self, url: str) -> httpx.Response:
        """GET a URL and raise NetworkError on any failure."""
        try:
            response = self._client.get(url)
        except httpx.HTTPError as e:
            raise NetworkError(f"Request to {url} failed: {e}", url) from e
        if response.status_code >= 400:
            raise NetworkError(
                f"Request to {url} failed with HTTP {response.status_code}",
                url,
                response.status_code,
            )
        return response

    # === Manifest ===

    def fetch_manifest(self) -> dict[str, str]:
        """Fetch the remote version manifest.

        Transport failures and 5xx answers are retried with exponential
        backoff up to config.manifest_retries times; other HTTP errors fail
        at once.

        Returns:
            Mapping of artifact keys to version tokens.

        Raises:
            NetworkError: If the manifest cannot be fetched.
        """
        url = self._config.manifest_url
        logger.info(f"Fetching manifest {url}")
        response: httpx.Response = retry_with_backoff(
            func=lambda: self._get(url),
            max_retries=self._config.manifest_retries,
            retryable_exceptions=(NetworkError,),
            should_retry=_is_transient,
            sleep=self._sleep,
        )
        return parse_properties(response.text)

    def fetch_catalog(self) -> list[CatalogEntry]:
        """Fetch and parse the resource catalog.

        Raises:
            NetworkError: If the catalog cannot be fetched.
            ManifestError: If the catalog is malformed.
        """
        url = self._config.catalog_url
        logger.info(f"Fetching resource catalog {url}")
        return parse_catalog(self._get(url).content)

    # === Artifacts ===

    def download(self, url: str) -> bytes:
        """Download a whole artifact into memory.

        The body is read into a growing buffer. The bytes received on the
        wire are checked against the declared Content-Length (when present)
        and the decoded size against config.max_artifact_size.

        Args:
            url: Artifact URL.

        Returns:
            The artifact bytes.

        Raises:
            NetworkError: If the request fails.
            IntegrityError: If the body is larger than allowed or its length
                differs from the declared one.
        """
        limit = self._config.max_artifact_size
        buffer = bytearray()
        try:
            with self._client.stream(
                "GET", url, headers={"Accept-Encoding": "identity"}
            ) as response:
                if response.status_code >= 400:
                    raise NetworkError(
                        f"Download of {url} failed with HTTP {response.status_code}",
                        url,
                        response.status_code,
                    )
                declared = _declared_length(response)
                if declared is not None and declared > limit:
                    raise IntegrityError(
                        f"{url} announces {declared} bytes, above the {limit} byte limit"
                    )
                logger.info(f"Downloading {url} ({declared if declared is not None else '?'} bytes)")
                for chunk in response.iter_bytes():
                    buffer.extend(chunk)
                    if len(buffer) > limit:
                        raise IntegrityError(f"{url} exceeds the {limit} byte limit")
                # Content-Length counts wire bytes, before any content decoding
                received = response.num_bytes_downloaded
        except httpx.HTTPError as e:
            raise NetworkError(f"Download of {url} failed: {e}", url) from e

        if declared is not None and received != declared:
            raise IntegrityError(
                f"{url} returned {received} bytes, expected {declared}"
            )
        return bytes(buffer)


def _is_transient(error: Exception) -> bool:
    status = getattr(error, "status_code", None)
    return status is None or status >= 500


def _declared_length(response: httpx.Response) -> int | None:
    value = response.headers.get("Content-Length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring invalid Content-Length {value!r}")
        return None
