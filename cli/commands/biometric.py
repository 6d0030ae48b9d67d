# PantryPal - Household Inventory Client
# Copyright (C) 2026 PantryPal Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import argparse
import asyncio


def cmd_biometric_status(args: argparse.Namespace) -> None:
    """Show device capability and the opt-in state."""
    from pantrypal.auth.orchestrator import build_orchestrator
    from pantrypal.biometric import BiometricGate

    async def _run() -> None:
        gate = build_orchestrator().biometric
        types = await gate.available_types()
        print(f"Supported:   {'yes' if await gate.is_supported() else 'no'}")
        print(f"Enrolled:    {'yes' if await gate.is_enrolled() else 'no'}")
        print(f"Type:        {BiometricGate.display_name(types)}")
        print(f"Enabled:     {'yes' if await gate.is_enabled() else 'no'}")
        saved = await gate.load_credentials()
        print(f"Saved login: {saved.username if saved else '(none)'}")

    asyncio.run(_run())


def cmd_biometric_disable(args: argparse.Namespace) -> None:
    """Turn biometric login off and delete the saved credentials."""
    from pantrypal.auth.orchestrator import build_orchestrator

    async def _run() -> None:
        orchestrator = build_orchestrator()
        if await orchestrator.disable_biometric():
            print("Biometric login disabled; saved credentials deleted")
        else:
            print("Biometric login disabled")

    asyncio.run(_run())
