# PantryPal - Household Inventory Client
# Copyright (C) 2026 PantryPal Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of the PantryPal client, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Authentication data models for the PantryPal client."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class Credentials(BaseModel):
    """Username/password pair saved for biometric replay."""

    username: str
    password: str = Field(repr=False)


class User(BaseModel):
    """User object as returned by ``/api/auth/me`` and the login endpoints."""

    model_config = ConfigDict(extra="allow")

    id: int | str | None = None
    username: str
    email: str | None = None
    full_name: str | None = None
    is_admin: bool = False


class Session(BaseModel):
    """An authenticated session issued by the server."""

    token: str = Field(repr=False)
    user: User | None = None

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> Session:
        """Build from a ``{session_token, user}`` login/register payload."""
        user = data.get("user")
        return cls(
            token=data["session_token"],
            user=User.model_validate(user) if user else None,
        )


class AuthStatusInfo(BaseModel):
    """Payload of ``GET /api/auth/status``."""

    model_config = ConfigDict(extra="allow")

    auth_mode: str = "unknown"  # "none" | "full" | "smart" | "api_key_only"
    requires_api_key: bool = False


class AuthState(BaseModel):
    """Process-wide authentication state consumed by the navigation layer."""

    model_config = ConfigDict(frozen=True)

    status: Literal["checking_auth", "needs_auth", "authenticated"]
    user: User | None = None

    @classmethod
    def checking(cls) -> AuthState:
        return cls(status="checking_auth")

    @classmethod
    def needs_auth(cls) -> AuthState:
        return cls(status="needs_auth")

    @classmethod
    def authenticated(cls, user: User | None = None) -> AuthState:
        return cls(status="authenticated", user=user)

    @property
    def is_authenticated(self) -> bool:
        return self.status == "authenticated"
