# PantryPal - Household Inventory Client
# Copyright (C) 2026 PantryPal Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of the PantryPal client, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Auth endpoints of the PantryPal backend."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from pantrypal.api.client import ApiClientFactory
from pantrypal.auth.models import AuthStatusInfo, Session, User
from pantrypal.exceptions import ApiError, PantryPalError

logger = logging.getLogger("pantrypal.api.auth")

STATUS_PATH = "/api/auth/status"
LOGIN_PATH = "/api/auth/login"
REGISTER_PATH = "/api/auth/register"
ME_PATH = "/api/auth/me"
LOGOUT_PATH = "/api/auth/logout"


def _session_from(data: object) -> Session:
    if not isinstance(data, dict) or not data.get("session_token"):
        raise ApiError("Server response did not include a session token")
    try:
        return Session.from_response(data)
    except ValidationError as exc:
        raise ApiError(f"Malformed session payload ({exc.error_count()} errors)") from exc


async def get_auth_status(
    factory: ApiClientFactory, *, timeout: float | None = None,
) -> AuthStatusInfo:
    """Query the server's auth mode.  Network and HTTP errors propagate."""
    data = await factory.get(STATUS_PATH, timeout=timeout)
    if not isinstance(data, dict):
        raise ApiError("Unexpected auth status payload")
    return AuthStatusInfo.model_validate(data)


async def check_auth_status(factory: ApiClientFactory) -> AuthStatusInfo:
    """Like :func:`get_auth_status` but never raises.

    Returns ``auth_mode="unknown"`` when the server cannot be asked.
    """
    try:
        return await get_auth_status(factory)
    except PantryPalError as exc:
        logger.warning("Failed to check auth status: %s", exc)
        return AuthStatusInfo(auth_mode="unknown", requires_api_key=False)


async def login(
    factory: ApiClientFactory,
    username: str,
    password: str,
    *,
    timeout: float | None = None,
) -> Session:
    data = await factory.post(
        LOGIN_PATH,
        {"username": username, "password": password},
        timeout=timeout,
        invalidate_on_401=False,
    )
    return _session_from(data)


async def register(
    factory: ApiClientFactory,
    username: str,
    email: str,
    password: str,
    full_name: str | None = None,
) -> Session:
    data = await factory.post(
        REGISTER_PATH,
        {
            "username": username,
            "email": email,
            "full_name": full_name,
            "password": password,
        },
        invalidate_on_401=False,
    )
    return _session_from(data)


async def fetch_current_user(
    factory: ApiClientFactory, *, timeout: float | None = None,
) -> User:
    """``GET /api/auth/me`` with the stored Bearer token."""
    data = await factory.get(ME_PATH, timeout=timeout)
    try:
        return User.model_validate(data)
    except ValidationError as exc:
        raise ApiError(f"Malformed user payload ({exc.error_count()} errors)") from exc


async def logout(factory: ApiClientFactory, *, timeout: float | None = None) -> None:
    await factory.post(LOGOUT_PATH, timeout=timeout, invalidate_on_401=False)
