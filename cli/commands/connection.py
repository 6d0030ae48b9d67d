# PantryPal - Household Inventory Client
# Copyright (C) 2026 PantryPal Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import argparse
import asyncio
import sys

from pantrypal.exceptions import InvalidServerUrlError


def _mask(value: str | None) -> str:
    if not value:
        return "(not set)"
    if len(value) <= 8:
        return "****"
    return f"{value[:4]}...{value[-4:]}"


# ── Server URL ───────────────────────────────────────────


def cmd_server_set(args: argparse.Namespace) -> None:
    """Store the server base URL."""
    from pantrypal.auth.orchestrator import build_orchestrator

    async def _run() -> None:
        orchestrator = build_orchestrator()
        try:
            try:
                saved = await orchestrator.configure_server(args.url)
            except InvalidServerUrlError as exc:
                print(f"Error: {exc}")
                sys.exit(1)
            if not saved:
                print("Error: could not save the server URL")
                sys.exit(1)
            print(f"Server set to {await orchestrator.store.get_base_url()}")
        finally:
            await orchestrator.factory.aclose()

    asyncio.run(_run())


def cmd_server_show(args: argparse.Namespace) -> None:
    """Print the stored connection settings and the server's auth mode."""
    from pantrypal.api.auth import check_auth_status
    from pantrypal.auth.orchestrator import build_orchestrator

    async def _run() -> None:
        orchestrator = build_orchestrator()
        try:
            snapshot = await orchestrator.store.snapshot()
            print(f"Server URL:  {snapshot.base_url or '(not set)'}")
            print(f"API key:     {_mask(snapshot.api_key)}")
            print(f"Session:     {'stored' if snapshot.session_token else 'none'}")
            print(f"Timeout:     {orchestrator.settings.request_timeout}s "
                  f"({orchestrator.settings.profile})")
            if snapshot.base_url:
                status = await check_auth_status(orchestrator.factory)
                print(f"Auth mode:   {status.auth_mode}")
        finally:
            await orchestrator.factory.aclose()

    asyncio.run(_run())


def cmd_server_forget(args: argparse.Namespace) -> None:
    """Remove the stored server URL."""
    from pantrypal.auth.orchestrator import build_orchestrator

    async def _run() -> None:
        orchestrator = build_orchestrator()
        if await orchestrator.forget_server():
            print("Server URL removed")
        else:
            print("Error: could not remove the server URL")
            sys.exit(1)

    asyncio.run(_run())


# ── API key ──────────────────────────────────────────────


def cmd_api_key_set(args: argparse.Namespace) -> None:
    """Store the API key sent as ``X-API-Key``."""
    from pantrypal.auth.orchestrator import build_orchestrator

    async def _run() -> None:
        orchestrator = build_orchestrator()
        if not args.key.strip():
            print("Error: API key is empty")
            sys.exit(1)
        if await orchestrator.factory.set_api_key(args.key):
            print(f"API key saved ({_mask(args.key.strip())})")
        else:
            print("Error: could not save the API key")
            sys.exit(1)

    asyncio.run(_run())


def cmd_api_key_clear(args: argparse.Namespace) -> None:
    """Remove the stored API key."""
    from pantrypal.auth.orchestrator import build_orchestrator

    async def _run() -> None:
        orchestrator = build_orchestrator()
        await orchestrator.factory.remove_api_key()
        print("API key removed")

    asyncio.run(_run())


# ── Profile ──────────────────────────────────────────────


def cmd_profile(args: argparse.Namespace) -> None:
    """Show the timeout profile, or switch it when a name is given."""
    from pantrypal.config import load_config, resolve_settings, save_config

    config = load_config()
    if args.name and args.name != config.profile:
        config = config.model_copy(update={"profile": args.name})
        save_config(config)
    settings = resolve_settings(config)
    print(f"Profile: {settings.profile} (requests {settings.request_timeout}s, "
          f"probes {settings.probe_timeout}s)")
