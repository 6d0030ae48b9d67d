# PantryPal - Household Inventory Client
# Copyright (C) 2026 PantryPal Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys

from pantrypal.exceptions import (
    ApiError,
    NetworkUnreachableError,
    PantryPalError,
    StorageError,
    ValidationError,
)


async def _confirm(name: str) -> bool:
    answer = await asyncio.get_running_loop().run_in_executor(
        None, input, f"Enable {name} login for next time? [y/N] ",
    )
    return answer.strip().lower() in ("y", "yes")


# ── Status ───────────────────────────────────────────────


def cmd_status(args: argparse.Namespace) -> None:
    """Resolve the startup auth state and print it."""
    from pantrypal.auth.orchestrator import build_orchestrator

    async def _run() -> None:
        orchestrator = build_orchestrator()
        try:
            state = await orchestrator.check_authentication()
        finally:
            await orchestrator.factory.aclose()
        if state.is_authenticated:
            who = state.user.username if state.user else "(no user; server auth disabled)"
            print(f"authenticated: {who}")
        else:
            print(state.status)

    asyncio.run(_run())


# ── Login / Logout ───────────────────────────────────────


def cmd_login(args: argparse.Namespace) -> None:
    """Log in with username/password, prompting for anything missing."""
    from pantrypal.auth.orchestrator import build_orchestrator

    username = args.username or input("Username: ")
    password = args.password or getpass.getpass("Password: ")
    offer = None if args.password else _confirm

    async def _run() -> None:
        orchestrator = build_orchestrator()
        try:
            user = await orchestrator.login(username, password, offer_biometric=offer)
        except ValidationError as exc:
            print(f"Error: {exc}")
            sys.exit(1)
        except NetworkUnreachableError as exc:
            print(f"Cannot reach server: {exc}")
            sys.exit(1)
        except (ApiError, StorageError) as exc:
            print(f"Login failed: {exc}")
            sys.exit(1)
        finally:
            await orchestrator.factory.aclose()
        print(f"Logged in as {user.username if user else username}")

    asyncio.run(_run())


def cmd_logout(args: argparse.Namespace) -> None:
    """End the current session."""
    from pantrypal.auth.orchestrator import build_orchestrator

    async def _run() -> None:
        orchestrator = build_orchestrator()
        try:
            await orchestrator.logout()
        finally:
            await orchestrator.factory.aclose()
        print("Logged out")

    asyncio.run(_run())


def cmd_whoami(args: argparse.Namespace) -> None:
    """Print the user the stored session belongs to."""
    from pantrypal.api.auth import fetch_current_user
    from pantrypal.auth.orchestrator import build_orchestrator

    async def _run() -> None:
        orchestrator = build_orchestrator()
        try:
            if not await orchestrator.store.get_session_token():
                print("Not logged in")
                sys.exit(1)
            try:
                user = await fetch_current_user(orchestrator.factory)
            except PantryPalError as exc:
                print(f"Error: {exc}")
                sys.exit(1)
        finally:
            await orchestrator.factory.aclose()
        line = user.username
        if user.email:
            line += f" <{user.email}>"
        if user.is_admin:
            line += " [admin]"
        print(line)

    asyncio.run(_run())
