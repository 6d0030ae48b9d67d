# PantryPal - Household Inventory Client
# Copyright (C) 2026 PantryPal Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from pantrypal.config.models import (
    PROFILE_TIMEOUTS,
    ClientConfig,
    ClientSettings,
    get_config_path,
    invalidate_cache,
    load_config,
    resolve_settings,
    save_config,
)
