# PantryPal - Household Inventory Client
# Copyright (C) 2026 PantryPal Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of the PantryPal client, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Async compatibility helper for blocking platform APIs (keyring, files)."""
from __future__ import annotations

import asyncio
from functools import partial
from typing import Any, Callable, TypeVar

T = TypeVar("T")


async def run_sync(fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run a synchronous function in the default thread-pool executor.

    Keeps the event loop responsive while the OS keyring or the
    filesystem is busy.
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(fn, *args, **kwargs))
