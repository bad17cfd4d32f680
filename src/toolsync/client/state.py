"""Local version state for the updater.

This module provides:
- VersionLedger: SQLite-backed record of installed versions and refresh times
- ProjectVersionStamp: Versions applied to a single consuming project

Architecture:
    The ledger runs in autocommit mode, so every set_version() call is
    durable before it returns. A run that dies halfway leaves every artifact
    it finished recorded and nothing else.

    Artifacts and optional resources share one table, split by
    VersionCategory. Artifact versions are opaque tokens; resource versions
    are catalog integers stored as text.
"""

from __future__ import annotations

import logging
import os
import sqlite3
import threading
from pathlib import Path

from toolsync.client.manifest import dump_properties, parse_properties
from toolsync.core.types import VersionCategory

logger = logging.getLogger(__name__)

MISSING_VERSION = "0"

LAST_UPDATE = "lastUpdate"
LAST_SKIN_UPDATE = "lastSkinUpdate"

PROJECT_STAMP_FILE = "Versions.properties"


class VersionLedger:
    """SQLite-based ledger of synced versions.

    Owned by a single update run; opened once at start and flushed on every
    mutation.
    """

    def __init__(self, db_path: Path) -> None:
        """Open (or create) the ledger database.

        Args:
            db_path: Path to SQLite database file.
        """
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.RLock()

        self._conn = sqlite3.connect(
            str(self._db_path),
            check_same_thread=False,
            isolation_level=None,  # Autocommit mode
        )
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")

        self._create_tables()

    def _create_tables(self) -> None:
        """Create database tables if they don't exist."""
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS versions (
                category TEXT NOT NULL,
                key TEXT NOT NULL,
                version TEXT NOT NULL,
                PRIMARY KEY (category, key)
            );

            -- Key-value run state (refresh timestamps)
            CREATE TABLE IF NOT EXISTS sync_state (
                key TEXT PRIMARY KEY,
                value TEXT
            );
        """)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> VersionLedger:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # === Versions ===

    def get_version(
        self,
        key: str,
        category: VersionCategory = VersionCategory.ARTIFACT,
    ) -> str:
        """Get the recorded version of a key, or "0" when unknown."""
        with self._lock:
            row = self._conn.execute(
                "SELECT version FROM versions WHERE category = ? AND key = ?",
                (category.value, key),
            ).fetchone()
        return row["version"] if row else MISSING_VERSION

    def set_version(
        self,
        key: str,
        version: str,
        category: VersionCategory = VersionCategory.ARTIFACT,
    ) -> None:
        """Record the version of a key (upsert)."""
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO versions (category, key, version) VALUES (?, ?, ?)",
                (category.value, key, version),
            )
        logger.debug(f"Recorded {category.value} {key} = {version}")

    def versions(
        self,
        category: VersionCategory = VersionCategory.ARTIFACT,
    ) -> dict[str, str]:
        """Get all recorded versions of one category."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT key, version FROM versions WHERE category = ? ORDER BY key",
                (category.value,),
            ).fetchall()
        return {row["key"]: row["version"] for row in rows}

    def get_resource_version(self, path: str) -> int:
        """Get the stored catalog version of a resource."""
        value = self.get_version(path, VersionCategory.RESOURCE)
        try:
            return int(value)
        except ValueError:
            logger.warning(f"Ignoring invalid stored version {value!r} for {path}")
            return 0

    def set_resource_version(self, path: str, version: int) -> None:
        """Record the catalog version of a resource."""
        self.set_version(path, str(version), VersionCategory.RESOURCE)

    # === Run state ===

    def get_state(self, key: str) -> str | None:
        """Get a run state value."""
        with self._lock:
            row = self._conn.execute(
                "SELECT value FROM sync_state WHERE key = ?",
                (key,),
            ).fetchone()
        return row["value"] if row else None

    def set_state(self, key: str, value: str) -> None:
        """Set a run state value."""
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO sync_state (key, value) VALUES (?, ?)",
                (key, value),
            )

    def _get_timestamp(self, key: str) -> float:
        value = self.get_state(key)
        return float(value) if value else 0.0

    def get_last_update(self) -> float:
        """Get timestamp of the last successful manifest sync (0 if never)."""
        return self._get_timestamp(LAST_UPDATE)

    def set_last_update(self, timestamp: float) -> None:
        """Set timestamp of the last successful manifest sync."""
        self.set_state(LAST_UPDATE, repr(timestamp))

    def get_last_skin_update(self) -> float:
        """Get timestamp of the last successful catalog sync (0 if never)."""
        return self._get_timestamp(LAST_SKIN_UPDATE)

    def set_last_skin_update(self, timestamp: float) -> None:
        """Set timestamp of the last successful catalog sync."""
        self.set_state(LAST_SKIN_UPDATE, repr(timestamp))


class ProjectVersionStamp:
    """Versions last applied to one project.

    Stored as a properties file in the project root so it can travel with the
    project. A project may lag behind the shared cache.
    """

    def __init__(self, project_dir: Path) -> None:
        self.project_dir = Path(project_dir)
        self.path = self.project_dir / PROJECT_STAMP_FILE
        self._versions: dict[str, str] = {}
        if self.path.exists():
            self._versions = parse_properties(self.path.read_text(encoding="utf-8"))

    def get_version(self, key: str) -> str:
        return self._versions.get(key, MISSING_VERSION)

    def set_version(self, key: str, version: str) -> None:
        self._versions[key] = version

    def as_dict(self) -> dict[str, str]:
        return dict(self._versions)

    def save(self) -> None:
        """Write the stamp file, replacing the old one atomically."""
        self.project_dir.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(dump_properties(self._versions), encoding="utf-8")
        os.replace(tmp_path, self.path)
