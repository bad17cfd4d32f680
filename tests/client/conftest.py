"""Shared fixtures for client tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from toolsync.core.config import UpdaterConfig

BASE_URL = "http://updates.test/"
SKIN_BASE_URL = "http://skins.test"


@pytest.fixture
def config(tmp_path: Path) -> UpdaterConfig:
    """Config pointing at a temporary home and a fake server, no bundle."""
    return UpdaterConfig(
        home_dir=tmp_path / "home",
        base_url=BASE_URL,
        skin_base_url=SKIN_BASE_URL,
        manifest_retries=2,
        bundle=None,
    )
