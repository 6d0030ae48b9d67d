# PantryPal - Household Inventory Client
# Copyright (C) 2026 PantryPal Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of the PantryPal client, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Biometric gate: capability probes and biometric credential replay.

The platform side (fingerprint reader, face unlock, ...) is behind a
:class:`BiometricBackend`.  Backends may raise freely; the
:class:`BiometricGate` converts every platform failure into "feature
unavailable" and never lets an exception reach its caller.

Biometric login is a runtime capability: a device without a backend uses
:class:`UnavailableBiometricBackend` and every probe answers ``False``.
"""

from __future__ import annotations

import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from pantrypal.auth.models import Credentials
from pantrypal.storage import CredentialStore

logger = logging.getLogger("pantrypal.biometric")

DEFAULT_PROMPT = "Authenticate to access PantryPal"
LOGIN_PROMPT = "Login to PantryPal"


class BiometricType(str, enum.Enum):
    FACE = "face"
    FINGERPRINT = "fingerprint"
    IRIS = "iris"


# Precedence for the human-readable label: face > fingerprint > iris.
_DISPLAY_NAMES: tuple[tuple[BiometricType, str], ...] = (
    (BiometricType.FACE, "Face ID"),
    (BiometricType.FINGERPRINT, "Touch ID"),
    (BiometricType.IRIS, "Iris"),
)
GENERIC_NAME = "Biometric"


# ── Platform backends ────────────────────────────────────────


class BiometricBackend(ABC):
    """Platform biometric API.  Implementations may raise on any call."""

    @abstractmethod
    async def has_hardware(self) -> bool:
        """Return whether the device has a biometric sensor."""

    @abstractmethod
    async def is_enrolled(self) -> bool:
        """Return whether the user has enrolled a face/finger/iris."""

    @abstractmethod
    async def supported_types(self) -> set[BiometricType]:
        """Return the biometric kinds the device offers."""

    @abstractmethod
    async def authenticate(
        self,
        prompt: str,
        *,
        cancel_label: str = "Cancel",
        fallback_label: str = "Use password",
        allow_device_fallback: bool = True,
    ) -> bool:
        """Show the platform prompt; return ``True`` only on success."""


class UnavailableBiometricBackend(BiometricBackend):
    """Backend for devices (or builds) without biometric support."""

    async def has_hardware(self) -> bool:
        return False

    async def is_enrolled(self) -> bool:
        return False

    async def supported_types(self) -> set[BiometricType]:
        return set()

    async def authenticate(self, prompt: str, **_kw) -> bool:  # noqa: ANN003
        return False


# ── Gate ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class BiometricLoginResult:
    success: bool
    credentials: Credentials | None = None


class BiometricGate:
    """Opt-in biometric login on top of the secure credential store."""

    def __init__(
        self,
        store: CredentialStore,
        backend: BiometricBackend | None = None,
    ) -> None:
        self.store = store
        self.backend = backend or UnavailableBiometricBackend()

    # ── Capability probes (fail closed) ──────────────────────

    async def is_supported(self) -> bool:
        try:
            return bool(await self.backend.has_hardware())
        except Exception as exc:
            logger.warning("Biometric hardware check failed: %s", exc)
            return False

    async def is_enrolled(self) -> bool:
        try:
            return bool(await self.backend.is_enrolled())
        except Exception as exc:
            logger.warning("Biometric enrollment check failed: %s", exc)
            return False

    async def available_types(self) -> set[BiometricType]:
        try:
            return set(await self.backend.supported_types())
        except Exception as exc:
            logger.warning("Biometric type query failed: %s", exc)
            return set()

    @staticmethod
    def display_name(types: set[BiometricType] | None) -> str:
        """Map available biometric kinds to the label shown to the user."""
        if not types:
            return GENERIC_NAME
        for kind, name in _DISPLAY_NAMES:
            if kind in types:
                return name
        return GENERIC_NAME

    async def can_offer_enrollment(self) -> bool:
        """Whether to ask the user, after a login, to enable biometric login."""
        return await self.is_supported() and await self.is_enrolled()

    # ── Opt-in flag ──────────────────────────────────────────

    async def is_enabled(self) -> bool:
        return await self.store.get_biometric_enabled()

    async def set_enabled(self, enabled: bool) -> bool:
        """Set the opt-in flag.

        Enabling is refused while no credentials are saved, so the flag can
        only be turned on after an explicit :meth:`save_credentials`.
        Disabling also deletes the saved credentials.
        """
        if not enabled:
            return await self.delete_credentials()
        if await self.load_credentials() is None:
            logger.info("Refusing to enable biometric login without saved credentials")
            return False
        return await self.store.set_biometric_enabled(enabled)

    # ── Saved credentials ────────────────────────────────────

    async def save_credentials(self, username: str, password: str) -> bool:
        return await self.store.set_credentials(
            Credentials(username=username, password=password),
        )

    async def load_credentials(self) -> Credentials | None:
        return await self.store.get_credentials()

    async def delete_credentials(self) -> bool:
        """Remove saved credentials and always turn the opt-in flag off."""
        removed = await self.store.clear_credentials()
        disabled = await self.store.set_biometric_enabled(False)
        if removed:
            logger.info("Biometric credentials removed")
        return removed and disabled

    async def enroll(self, username: str, password: str) -> bool:
        """Save *username*/*password* and enable biometric login."""
        if not await self.save_credentials(username, password):
            logger.warning("Could not save credentials for biometric login")
            return False
        return await self.set_enabled(True)

    # ── Prompt ───────────────────────────────────────────────

    async def authenticate(self, prompt: str = DEFAULT_PROMPT) -> bool:
        """Show the biometric prompt (device PIN fallback allowed)."""
        try:
            return bool(await self.backend.authenticate(
                prompt,
                cancel_label="Cancel",
                fallback_label="Use password",
                allow_device_fallback=True,
            ))
        except Exception as exc:
            logger.warning("Biometric prompt failed: %s", exc)
            return False

    async def perform_login(self) -> BiometricLoginResult:
        """Unlock saved credentials with a biometric prompt.

        The prompt is only shown when biometric login is enabled *and*
        credentials are saved; otherwise this fails fast.
        """
        if not await self.is_enabled():
            return BiometricLoginResult(success=False)

        credentials = await self.load_credentials()
        if credentials is None:
            return BiometricLoginResult(success=False)

        if not await self.authenticate(LOGIN_PROMPT):
            logger.info("Biometric prompt declined or failed")
            return BiometricLoginResult(success=False)

        return BiometricLoginResult(success=True, credentials=credentials)
