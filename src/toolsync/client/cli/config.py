"""Configuration utilities for the toolsync CLI.

This module provides shared configuration functions used across CLI commands.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from toolsync.core.config import UpdaterConfig

HOME_ENV_VAR = "TOOLSYNC_HOME"


def get_config_dir() -> Path:
    """Get the per-user updater directory.

    Returns:
        $TOOLSYNC_HOME if set, otherwise ~/.codenameone.
    """
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".codenameone"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "toolsync.json"


def load_config() -> dict[str, Any]:
    """Load configuration overrides from the config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, Any]) -> None:
    """Save configuration overrides to the config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def build_config() -> UpdaterConfig:
    """Build the immutable run configuration for this process."""
    return UpdaterConfig.from_dict(get_config_dir(), load_config())
