# PantryPal - Household Inventory Client
# Copyright (C) 2026 PantryPal Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from pantrypal.api.client import (
    ApiClient,
    ApiClientFactory,
    build_headers,
    parse_response,
)
