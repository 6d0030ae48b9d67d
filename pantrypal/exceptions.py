# PantryPal - Household Inventory Client
# Copyright (C) 2026 PantryPal Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of the PantryPal client, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Unified exception hierarchy for the PantryPal client.

All domain-specific exceptions derive from :class:`PantryPalError`,
enabling callers to catch the entire family with a single clause::

    try:
        ...
    except PantryPalError as e:
        logger.error("Client error: %s", e)

Storage and biometric failures are raised only *inside* their components
and are converted to ``None`` / ``False`` before reaching callers.  Network
failures propagate to the caller, which owns the user-facing message.
"""

from __future__ import annotations


class PantryPalError(Exception):
    """Base exception for all PantryPal client errors."""


# ── Network ──────────────────────────────────────────────────


class NetworkUnreachableError(PantryPalError):
    """Server could not be reached (connection refused, DNS, TLS, ...)."""


class RequestTimeoutError(NetworkUnreachableError):
    """Request exceeded its bounded timeout and was aborted."""


# ── API responses ────────────────────────────────────────────


class ApiError(PantryPalError):
    """Server answered with a non-success status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        detail: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class AuthInvalidError(ApiError):
    """HTTP 401: session or API key rejected.  Never retried automatically."""


class ApiValidationError(ApiError):
    """HTTP 4xx carrying a ``detail`` message meant for the user."""


class ServerError(ApiError):
    """HTTP 5xx from the backend."""


# ── Configuration ────────────────────────────────────────────


class ConfigError(PantryPalError):
    """Configuration errors."""


class ServerNotConfiguredError(ConfigError):
    """No server base URL has been stored yet."""


class InvalidServerUrlError(ConfigError):
    """Server URL is empty or does not use http:// or https://."""


# ── Client-side validation ───────────────────────────────────


class ValidationError(PantryPalError):
    """Form input rejected before any network call."""


class LoginValidationError(ValidationError):
    """Login form input incomplete."""


class SignupValidationError(ValidationError):
    """Signup form input rejected."""


# ── Platform ─────────────────────────────────────────────────


class PlatformCapabilityError(PantryPalError):
    """Biometric platform API failure.  Swallowed by the biometric gate."""


class StorageError(PantryPalError):
    """Persistent storage failure.

    Swallowed by the credential store.  The auth orchestrator raises it when a
    freshly issued session token cannot be saved.
    """
