# PantryPal - Household Inventory Client
# Copyright (C) 2026 PantryPal Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import argparse
import os


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="PantryPal - household inventory client"
    )
    parser.add_argument(
        "--data-dir",
        default=None,
        help="Override runtime data directory (default: ~/.pantrypal or PANTRYPAL_DATA_DIR)",
    )
    sub = parser.add_subparsers(dest="command")

    # ── Server connection ─────────────────────────────────
    p_server = sub.add_parser("server", help="Configure the PantryPal server")
    server_sub = p_server.add_subparsers(dest="server_command")
    p_server_set = server_sub.add_parser("set", help="Store the server URL")
    p_server_set.add_argument("url", help="Base URL, e.g. https://pantry.example.com")
    p_server_set.set_defaults(func=_lazy_server_set)
    p_server_show = server_sub.add_parser("show", help="Show connection settings")
    p_server_show.set_defaults(func=_lazy_server_show)
    p_server_forget = server_sub.add_parser("forget", help="Remove the stored server URL")
    p_server_forget.set_defaults(func=_lazy_server_forget)

    # ── API key ───────────────────────────────────────────
    p_key = sub.add_parser("api-key", help="Manage the service API key")
    key_sub = p_key.add_subparsers(dest="api_key_command")
    p_key_set = key_sub.add_parser("set", help="Store an API key")
    p_key_set.add_argument("key", help="API key sent as X-API-Key")
    p_key_set.set_defaults(func=_lazy_api_key_set)
    p_key_clear = key_sub.add_parser("clear", help="Remove the stored API key")
    p_key_clear.set_defaults(func=_lazy_api_key_clear)

    # ── Client profile ────────────────────────────────────
    p_profile = sub.add_parser("profile", help="Show or change the timeout profile")
    p_profile.add_argument(
        "name", nargs="?", choices=["mobile", "web"], default=None,
        help="mobile (3s requests) or web (10s requests)",
    )
    p_profile.set_defaults(func=_lazy_profile)

    # ── Session ───────────────────────────────────────────
    p_status = sub.add_parser("status", help="Resolve and print the auth state")
    p_status.set_defaults(func=_lazy_status)

    p_login = sub.add_parser("login", help="Log in with username and password")
    p_login.add_argument("--username", default=None)
    p_login.add_argument(
        "--password", default=None,
        help="Password (prompted when omitted; avoid on shared machines)",
    )
    p_login.set_defaults(func=_lazy_login)

    p_logout = sub.add_parser("logout", help="End the current session")
    p_logout.set_defaults(func=_lazy_logout)

    p_whoami = sub.add_parser("whoami", help="Show the logged-in user")
    p_whoami.set_defaults(func=_lazy_whoami)

    # ── Biometric ─────────────────────────────────────────
    p_bio = sub.add_parser("biometric", help="Biometric login settings")
    bio_sub = p_bio.add_subparsers(dest="biometric_command")
    p_bio_status = bio_sub.add_parser("status", help="Show biometric capability and opt-in")
    p_bio_status.set_defaults(func=_lazy_biometric_status)
    p_bio_disable = bio_sub.add_parser(
        "disable", help="Disable biometric login and delete saved credentials",
    )
    p_bio_disable.set_defaults(func=_lazy_biometric_disable)

    return parser


def cli_main() -> None:
    from dotenv import load_dotenv

    load_dotenv()

    parser = build_parser()
    args = parser.parse_args()

    # Apply --data-dir override before any command
    if args.data_dir:
        os.environ["PANTRYPAL_DATA_DIR"] = args.data_dir

    from pantrypal.config import load_config
    from pantrypal.logging_config import setup_logging
    from pantrypal.paths import get_logs_dir

    setup_logging(
        level=os.environ.get("PANTRYPAL_LOG_LEVEL", load_config().log_level),
        log_dir=get_logs_dir(),
    )

    if hasattr(args, "func"):
        args.func(args)
    else:
        parser.print_help()


# ── Lazy import wrappers ──────────────────────────────────


def _lazy_server_set(args: argparse.Namespace) -> None:
    from cli.commands.connection import cmd_server_set

    cmd_server_set(args)


def _lazy_server_show(args: argparse.Namespace) -> None:
    from cli.commands.connection import cmd_server_show

    cmd_server_show(args)


def _lazy_server_forget(args: argparse.Namespace) -> None:
    from cli.commands.connection import cmd_server_forget

    cmd_server_forget(args)


def _lazy_api_key_set(args: argparse.Namespace) -> None:
    from cli.commands.connection import cmd_api_key_set

    cmd_api_key_set(args)


def _lazy_api_key_clear(args: argparse.Namespace) -> None:
    from cli.commands.connection import cmd_api_key_clear

    cmd_api_key_clear(args)


def _lazy_profile(args: argparse.Namespace) -> None:
    from cli.commands.connection import cmd_profile

    cmd_profile(args)


def _lazy_status(args: argparse.Namespace) -> None:
    from cli.commands.session import cmd_status

    cmd_status(args)


def _lazy_login(args: argparse.Namespace) -> None:
    from cli.commands.session import cmd_login

    cmd_login(args)


def _lazy_logout(args: argparse.Namespace) -> None:
    from cli.commands.session import cmd_logout

    cmd_logout(args)


def _lazy_whoami(args: argparse.Namespace) -> None:
    from cli.commands.session import cmd_whoami

    cmd_whoami(args)


def _lazy_biometric_status(args: argparse.Namespace) -> None:
    from cli.commands.biometric import cmd_biometric_status

    cmd_biometric_status(args)


def _lazy_biometric_disable(args: argparse.Namespace) -> None:
    from cli.commands.biometric import cmd_biometric_disable

    cmd_biometric_disable(args)
