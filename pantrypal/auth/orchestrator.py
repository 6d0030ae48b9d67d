# PantryPal - Household Inventory Client
# Copyright (C) 2026 PantryPal Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of the PantryPal client, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Auth orchestrator: the only writer of the process-wide :class:`AuthState`.

Startup resolution (:meth:`AuthOrchestrator.check_authentication`) runs
these steps in order, each short-circuiting on success:

1. No stored server URL, or the server does not answer the status probe
   → ``needs_auth`` so the user can (re)configure the connection.
2. Server auth mode ``none`` → ``authenticated`` without a user.
3. Biometric login enabled → biometric replay of the saved credentials.
4. Stored session token → validate it with ``GET /api/auth/me``.
5. Otherwise → ``needs_auth``.

Anything unexpected resolves to ``needs_auth``: the client never grants
access it could not verify.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from pantrypal.api import auth as auth_api
from pantrypal.api.client import ApiClientFactory
from pantrypal.auth.models import AuthState, Session, User
from pantrypal.auth.validation import validate_login, validate_signup
from pantrypal.biometric import BiometricBackend, BiometricGate
from pantrypal.config import ClientSettings, resolve_settings
from pantrypal.exceptions import (
    ApiValidationError,
    AuthInvalidError,
    PantryPalError,
    StorageError,
)
from pantrypal.storage import CredentialStore

logger = logging.getLogger("pantrypal.auth")

StateListener = Callable[[AuthState], None]
# Receives the biometric display name ("Face ID", ...); returns the user's answer.
EnrollmentPrompt = Callable[[str], Awaitable[bool]]


class AuthOrchestrator:
    """Drives ``checking_auth → needs_auth | authenticated`` transitions."""

    def __init__(
        self,
        store: CredentialStore,
        biometric: BiometricGate,
        factory: ApiClientFactory,
        settings: ClientSettings | None = None,
    ) -> None:
        self.store = store
        self.biometric = biometric
        self.factory = factory
        self.settings = settings or factory.settings
        self.state = AuthState.checking()
        self._listeners: list[StateListener] = []

    @property
    def current_user(self) -> User | None:
        return self.state.user

    # ── Listeners ────────────────────────────────────────────

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Subscribe to state changes.  Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def _transition(self, state: AuthState) -> None:
        if state == self.state:
            return
        logger.info("Auth state: %s -> %s", self.state.status, state.status)
        self.state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Auth state listener failed")

    # ── Startup ──────────────────────────────────────────────

    async def check_authentication(self) -> AuthState:
        """Resolve the startup state.  Never raises."""
        self._transition(AuthState.checking())
        try:
            state = await self._resolve_startup_state()
        except Exception:
            logger.exception("Auth check failed; requiring login")
            state = AuthState.needs_auth()
        self._transition(state)
        return state

    async def _resolve_startup_state(self) -> AuthState:
        base_url = await self.store.get_base_url()
        if not base_url:
            logger.info("No server configured")
            return AuthState.needs_auth()

        try:
            status = await auth_api.get_auth_status(
                self.factory, timeout=self.settings.probe_timeout,
            )
        except PantryPalError as exc:
            logger.warning("Cannot reach server at %s: %s", base_url, exc)
            return AuthState.needs_auth()

        if status.auth_mode == "none":
            logger.info("Server requires no authentication")
            return AuthState.authenticated()

        session = await self._try_biometric_login()
        if session is not None:
            try:
                await self.handle_login_success(session)
            except StorageError as exc:
                logger.error("Biometric login succeeded but %s", exc)
                return AuthState.needs_auth()
            return self.state

        if await self.store.get_session_token():
            return await self._validate_stored_session()

        return AuthState.needs_auth()

    async def _try_biometric_login(self) -> Session | None:
        if not await self.biometric.is_enabled():
            return None

        result = await self.biometric.perform_login()
        if not result.success or result.credentials is None:
            return None

        credentials = result.credentials
        try:
            return await auth_api.login(
                self.factory,
                credentials.username,
                credentials.password,
                timeout=self.settings.probe_timeout,
            )
        except (AuthInvalidError, ApiValidationError) as exc:
            # The saved password no longer works; don't keep replaying it.
            logger.warning("Saved credentials rejected (%s); disabling biometric login", exc)
            await self.biometric.delete_credentials()
        except PantryPalError as exc:
            logger.warning("Biometric login failed: %s", exc)
        return None

    async def _validate_stored_session(self) -> AuthState:
        try:
            user = await auth_api.fetch_current_user(
                self.factory, timeout=self.settings.probe_timeout,
            )
        except PantryPalError as exc:
            logger.info("Stored session could not be validated: %s", exc)
            await self.store.clear_session_token()
            self.factory.reset_instance()
            return AuthState.needs_auth()
        logger.info("Session valid for user %s", user.username)
        return AuthState.authenticated(user)

    # ── Login / signup / logout ──────────────────────────────

    async def handle_login_success(self, session: Session) -> None:
        """Persist *session* and switch to ``authenticated``.

        The API client is reset before the in-memory user changes, so no
        request can go out with headers built from the previous token.

        Raises:
            StorageError: the token could not be saved.  The state is left
                unchanged, since a client without the token would send
                unauthenticated requests.
        """
        if not await self.store.set_session_token(session.token):
            raise StorageError("the session could not be saved on this device")
        self.factory.reset_instance()
        self._transition(AuthState.authenticated(session.user))

    async def login(
        self,
        username: str,
        password: str,
        *,
        offer_biometric: EnrollmentPrompt | None = None,
    ) -> User | None:
        """Manual login.

        Raises:
            LoginValidationError: empty username or password.
            ApiValidationError / AuthInvalidError: server refused the login.
            NetworkUnreachableError: server not reachable.
            StorageError: logged in, but the session could not be saved.
        """
        username = validate_login(username, password)
        session = await auth_api.login(self.factory, username, password)
        await self.handle_login_success(session)
        await self._offer_enrollment(username, password, offer_biometric)
        return session.user

    async def signup(
        self,
        username: str,
        email: str,
        password: str,
        confirm_password: str,
        full_name: str | None = None,
        *,
        offer_biometric: EnrollmentPrompt | None = None,
    ) -> User | None:
        """Create an account and log straight into it."""
        username, email = validate_signup(username, email, password, confirm_password)
        session = await auth_api.register(
            self.factory,
            username,
            email,
            password,
            full_name=(full_name or "").strip() or None,
        )
        await self.handle_login_success(session)
        await self._offer_enrollment(username, password, offer_biometric)
        return session.user

    async def _offer_enrollment(
        self,
        username: str,
        password: str,
        offer: EnrollmentPrompt | None,
    ) -> None:
        if offer is None or not await self.biometric.can_offer_enrollment():
            return
        name = BiometricGate.display_name(await self.biometric.available_types())
        if await offer(name):
            if await self.biometric.enroll(username, password):
                logger.info("%s login enabled", name)
            else:
                logger.warning("%s login could not be enabled", name)

    async def logout(self) -> None:
        """Log out locally; the server-side logout is best effort."""
        if await self.store.get_session_token():
            try:
                await auth_api.logout(self.factory, timeout=self.settings.probe_timeout)
            except PantryPalError as exc:
                logger.info("Server logout failed (ignored): %s", exc)

        await self.store.clear_session_token()
        self.factory.reset_instance()
        self._transition(AuthState.needs_auth())

    # ── Connection / biometric settings ──────────────────────

    async def configure_server(self, url: str) -> bool:
        """Store a new server URL.  Raises ``InvalidServerUrlError``."""
        return await self.factory.set_base_url(url)

    async def forget_server(self) -> bool:
        return await self.factory.clear_base_url()

    async def disable_biometric(self) -> bool:
        return await self.biometric.delete_credentials()


def build_orchestrator(
    settings: ClientSettings | None = None,
    *,
    store: CredentialStore | None = None,
    biometric_backend: BiometricBackend | None = None,
) -> AuthOrchestrator:
    """Wire the default store, biometric gate and API client factory."""
    if settings is None:
        settings = resolve_settings()
    if store is None:
        store = CredentialStore.default(settings.keyring_service)
    factory = ApiClientFactory(store, settings)
    gate = BiometricGate(store, biometric_backend)
    return AuthOrchestrator(store, gate, factory, settings)
