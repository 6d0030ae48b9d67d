# PantryPal - Household Inventory Client
# Copyright (C) 2026 PantryPal Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of the PantryPal client, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Centralized path resolution for the PantryPal client.

The runtime data directory can be overridden via the PANTRYPAL_DATA_DIR
environment variable.
"""

from __future__ import annotations

import os
from pathlib import Path

# Default runtime data directory
_DEFAULT_DATA_DIR = Path.home() / ".pantrypal"


def get_data_dir() -> Path:
    """Return the runtime data directory, respecting PANTRYPAL_DATA_DIR env var."""
    env_val = os.environ.get("PANTRYPAL_DATA_DIR")
    if env_val:
        return Path(env_val).expanduser().resolve()
    return _DEFAULT_DATA_DIR


def get_store_path() -> Path:
    return get_data_dir() / "store.json"


def get_logs_dir() -> Path:
    return get_data_dir() / "logs"
