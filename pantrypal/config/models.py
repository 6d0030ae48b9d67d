# PantryPal - Household Inventory Client
# Copyright (C) 2026 PantryPal Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of the PantryPal client, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Client configuration for PantryPal.

Defines the Pydantic model for ``config.json`` and provides
load / save / resolve helpers with a module-level singleton cache.

The server base URL and API key are *not* part of this file: they are
user-supplied connection settings owned by the credential store
(``API_BASE_URL`` / ``API_KEY``).
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger("pantrypal.config")

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

# Mobile must fail fast back to the server-configuration screen when a
# self-hosted server is misconfigured; web can afford to wait longer.
PROFILE_TIMEOUTS: dict[str, float] = {
    "mobile": 3.0,
    "web": 10.0,
}

DEFAULT_PROBE_TIMEOUT = 3.0
DEFAULT_KEYRING_SERVICE = "pantrypal"

# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class ClientConfig(BaseModel):
    """Root client configuration stored in config.json."""

    version: int = 1
    profile: Literal["mobile", "web"] = "mobile"
    request_timeout: float | None = Field(default=None, gt=0)  # None = profile default
    probe_timeout: float = Field(default=DEFAULT_PROBE_TIMEOUT, gt=0)
    keyring_service: str = DEFAULT_KEYRING_SERVICE
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _normalise_log_level(self) -> ClientConfig:
        self.log_level = self.log_level.upper()
        return self


@dataclass(frozen=True)
class ClientSettings:
    """Resolved, immutable runtime settings."""

    profile: str
    request_timeout: float
    probe_timeout: float
    keyring_service: str


def resolve_settings(config: ClientConfig | None = None) -> ClientSettings:
    """Resolve *config* (or the on-disk config) into concrete settings."""
    if config is None:
        config = load_config()
    timeout = config.request_timeout
    if timeout is None:
        timeout = PROFILE_TIMEOUTS[config.profile]
    return ClientSettings(
        profile=config.profile,
        request_timeout=timeout,
        probe_timeout=config.probe_timeout,
        keyring_service=config.keyring_service,
    )


# ---------------------------------------------------------------------------
# Singleton cache
# ---------------------------------------------------------------------------

_config: ClientConfig | None = None
_config_path: Path | None = None
_config_mtime: float = 0.0


def invalidate_cache() -> None:
    """Reset the module-level config cache (used by tests and CLI)."""
    global _config, _config_path, _config_mtime
    _config = None
    _config_path = None
    _config_mtime = 0.0


def get_config_path(data_dir: Path | None = None) -> Path:
    """Return the path to config.json inside *data_dir*."""
    if data_dir is None:
        from pantrypal.paths import get_data_dir

        data_dir = get_data_dir()
    return data_dir / "config.json"


# ---------------------------------------------------------------------------
# Load / Save
# ---------------------------------------------------------------------------


def load_config(path: Path | None = None) -> ClientConfig:
    """Load configuration from disk, returning cached instance when possible.

    When the file does not exist the default configuration is returned.
    The cache is invalidated automatically when the file's mtime changes.
    """
    global _config, _config_path, _config_mtime

    if path is None:
        path = get_config_path()

    if _config is not None and _config_path == path:
        try:
            disk_mtime = path.stat().st_mtime
        except OSError:
            disk_mtime = 0.0
        if disk_mtime == _config_mtime:
            return _config
        logger.debug("Config file changed on disk; reloading")

    if path.is_file():
        logger.debug("Loading config from %s", path)
        try:
            data: dict[str, Any] = json.loads(path.read_text(encoding="utf-8"))
            config = ClientConfig.model_validate(data)
        except json.JSONDecodeError as exc:
            logger.error("Failed to parse %s: %s", path, exc)
            raise
        except Exception as exc:
            logger.error("Failed to load config from %s: %s", path, exc)
            raise
    else:
        logger.info("Config file not found at %s; using defaults", path)
        config = ClientConfig()

    _config = config
    _config_path = path
    try:
        _config_mtime = path.stat().st_mtime
    except OSError:
        _config_mtime = 0.0
    return config


def save_config(config: ClientConfig, path: Path | None = None) -> None:
    """Persist *config* to disk as pretty-printed JSON (mode 0o600)."""
    global _config, _config_path, _config_mtime

    if path is None:
        path = get_config_path()

    path.parent.mkdir(parents=True, exist_ok=True)

    payload = config.model_dump(mode="json")
    text = json.dumps(payload, indent=2, ensure_ascii=False) + "\n"
    path.write_text(text, encoding="utf-8")
    os.chmod(path, 0o600)

    logger.debug("Config saved to %s", path)

    _config = config
    _config_path = path
    try:
        _config_mtime = path.stat().st_mtime
    except OSError:
        _config_mtime = 0.0
