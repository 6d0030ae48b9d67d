"""Unit tests for pantrypal/auth/orchestrator.py — startup resolution and session lifecycle."""
# PantryPal - Household Inventory Client
# Copyright (C) 2026 PantryPal Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import asyncio

import httpx
import pytest

from pantrypal.auth.models import AuthState, Session, User
from pantrypal.auth.orchestrator import AuthOrchestrator, build_orchestrator
from pantrypal.exceptions import (
    ApiValidationError,
    AuthInvalidError,
    InvalidServerUrlError,
    LoginValidationError,
    NetworkUnreachableError,
    SignupValidationError,
    StorageError,
)

BASE = "https://pantry.test"
USER = {"id": 1, "username": "alice", "email": "alice@example.com"}


def _full_mode(server) -> None:
    server.add("GET", "/api/auth/status", json={"auth_mode": "full", "requires_api_key": False})


# ── Startup resolution ──────────────────────────────────────


class TestCheckAuthentication:
    @pytest.mark.asyncio
    async def test_initial_state_is_checking(self, orchestrator):
        assert orchestrator.state.status == "checking_auth"

    @pytest.mark.asyncio
    async def test_no_base_url(self, orchestrator, server):
        state = await asyncio.wait_for(orchestrator.check_authentication(), timeout=3.0)
        assert state == AuthState.needs_auth()
        assert server.requests == []

    @pytest.mark.asyncio
    async def test_unreachable_server(self, orchestrator, store, server):
        await store.set_base_url(BASE)
        await store.set_session_token("tok-1")
        server.add("GET", "/api/auth/status", raises=httpx.ConnectError)
        state = await orchestrator.check_authentication()
        assert state.status == "needs_auth"
        assert server.calls("GET", "/api/auth/me") == []

    @pytest.mark.asyncio
    async def test_probe_timeout(self, orchestrator, store, server):
        await store.set_base_url(BASE)
        server.add("GET", "/api/auth/status", raises=httpx.ConnectTimeout)
        state = await orchestrator.check_authentication()
        assert state.status == "needs_auth"

    @pytest.mark.asyncio
    async def test_auth_mode_none(self, orchestrator, store, server, gate):
        await store.set_base_url(BASE)
        await store.set_session_token("tok-1")
        await gate.enroll("alice", "password1")
        server.add("GET", "/api/auth/status", json={"auth_mode": "none"})

        state = await orchestrator.check_authentication()

        assert state.is_authenticated
        assert state.user is None
        assert [r.url.path for r in server.requests] == ["/api/auth/status"]
        assert orchestrator.biometric.backend.prompts == []

    @pytest.mark.asyncio
    async def test_valid_stored_token(self, orchestrator, store, server):
        await store.set_base_url(BASE)
        await store.set_session_token("tok-1")
        _full_mode(server)
        server.add("GET", "/api/auth/me", json=USER)

        state = await orchestrator.check_authentication()

        assert state.is_authenticated
        assert orchestrator.current_user.username == "alice"
        me = server.calls("GET", "/api/auth/me")[0]
        assert me.headers["Authorization"] == "Bearer tok-1"

    @pytest.mark.asyncio
    async def test_rejected_stored_token(self, orchestrator, store, server):
        await store.set_base_url(BASE)
        await store.set_session_token("tok-1")
        _full_mode(server)
        server.add("GET", "/api/auth/me", 401, json={"detail": "Session expired"})

        state = await orchestrator.check_authentication()

        assert state == AuthState.needs_auth()
        assert await store.get_session_token() is None

    @pytest.mark.asyncio
    async def test_network_failure_on_me_clears_token(self, orchestrator, store, server):
        await store.set_base_url(BASE)
        await store.set_session_token("tok-1")
        _full_mode(server)
        server.add("GET", "/api/auth/me", raises=httpx.ReadTimeout)

        state = await orchestrator.check_authentication()

        assert state.status == "needs_auth"
        assert await store.get_session_token() is None

    @pytest.mark.asyncio
    async def test_no_token_no_biometric(self, orchestrator, store, server):
        await store.set_base_url(BASE)
        _full_mode(server)
        state = await orchestrator.check_authentication()
        assert state.status == "needs_auth"

    @pytest.mark.asyncio
    async def test_biometric_replay(self, orchestrator, store, server, gate, factory):
        await store.set_base_url(BASE)
        await gate.enroll("alice", "password1")
        _full_mode(server)
        server.add("POST", "/api/auth/login", json={"session_token": "tok-bio", "user": USER})

        state = await orchestrator.check_authentication()

        assert state.is_authenticated
        assert state.user.username == "alice"
        assert await store.get_session_token() == "tok-bio"
        client = await factory.get_instance()
        assert client.headers["Authorization"] == "Bearer tok-bio"

    @pytest.mark.asyncio
    async def test_biometric_cancel_falls_back_to_token(
        self, orchestrator, store, server, gate, biometric_backend,
    ):
        await store.set_base_url(BASE)
        await store.set_session_token("tok-1")
        await gate.enroll("alice", "password1")
        biometric_backend.accept = False
        _full_mode(server)
        server.add("GET", "/api/auth/me", json=USER)

        state = await orchestrator.check_authentication()

        assert state.is_authenticated
        assert server.calls("POST", "/api/auth/login") == []
        assert await gate.is_enabled() is True

    @pytest.mark.asyncio
    async def test_rejected_biometric_credentials_are_deleted(
        self, orchestrator, store, server, gate,
    ):
        await store.set_base_url(BASE)
        await gate.enroll("alice", "old-password")
        _full_mode(server)
        server.add("POST", "/api/auth/login", 401, json={"detail": "Invalid credentials"})

        state = await orchestrator.check_authentication()

        assert state.status == "needs_auth"
        assert await gate.load_credentials() is None
        assert await gate.is_enabled() is False

    @pytest.mark.asyncio
    async def test_biometric_network_failure_keeps_credentials(
        self, orchestrator, store, server, gate,
    ):
        await store.set_base_url(BASE)
        await gate.enroll("alice", "password1")
        _full_mode(server)
        server.add("POST", "/api/auth/login", raises=httpx.ConnectError)

        state = await orchestrator.check_authentication()

        assert state.status == "needs_auth"
        assert await gate.load_credentials() is not None

    @pytest.mark.asyncio
    async def test_biometric_replay_with_unsaved_session(
        self, orchestrator, store, server, gate, monkeypatch,
    ):
        await store.set_base_url(BASE)
        await gate.enroll("alice", "password1")
        _full_mode(server)
        server.add("POST", "/api/auth/login", json={"session_token": "tok-bio", "user": USER})

        async def _locked(token):
            return False

        monkeypatch.setattr(store, "set_session_token", _locked)
        state = await orchestrator.check_authentication()

        assert state.status == "needs_auth"

    @pytest.mark.asyncio
    async def test_unexpected_error_resolves_to_needs_auth(self, orchestrator, monkeypatch):
        async def _boom():
            raise RuntimeError("unexpected")

        monkeypatch.setattr(orchestrator.store, "get_base_url", _boom)
        state = await orchestrator.check_authentication()
        assert state.status == "needs_auth"


# ── Listeners ───────────────────────────────────────────────


class TestListeners:
    @pytest.mark.asyncio
    async def test_transitions_are_reported(self, orchestrator):
        seen: list[str] = []
        orchestrator.add_listener(lambda s: seen.append(s.status))
        await orchestrator.check_authentication()
        assert seen == ["needs_auth"]

    @pytest.mark.asyncio
    async def test_unsubscribe(self, orchestrator):
        seen: list[str] = []
        remove = orchestrator.add_listener(lambda s: seen.append(s.status))
        remove()
        remove()
        await orchestrator.check_authentication()
        assert seen == []

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_others(self, orchestrator):
        seen: list[str] = []

        def _bad(state):
            raise ValueError("listener bug")

        orchestrator.add_listener(_bad)
        orchestrator.add_listener(lambda s: seen.append(s.status))
        await orchestrator.check_authentication()
        assert seen == ["needs_auth"]


# ── Login success / login / signup ──────────────────────────


class TestLogin:
    @pytest.mark.asyncio
    async def test_handle_login_success_resets_client(self, orchestrator, store, factory):
        await store.set_base_url(BASE)
        await store.set_session_token("old")
        old = await factory.get_instance()

        session = Session(token="new", user=User(username="alice"))
        await orchestrator.handle_login_success(session)

        assert factory.cached_instance is None
        fresh = await factory.get_instance()
        assert fresh is not old
        assert fresh.headers["Authorization"] == "Bearer new"
        assert orchestrator.state.is_authenticated

    @pytest.mark.asyncio
    async def test_unsaved_session_is_not_authenticated(
        self, orchestrator, store, server, keyring_backend,
    ):
        await store.set_base_url(BASE)
        server.add("POST", "/api/auth/login", json={"session_token": "tok-1", "user": USER})
        keyring_backend.fail = True

        with pytest.raises(StorageError, match="could not be saved"):
            await orchestrator.login("alice", "password1")

        assert orchestrator.state.status == "checking_auth"
        keyring_backend.fail = False
        assert await store.get_session_token() is None

    @pytest.mark.asyncio
    async def test_login(self, orchestrator, store, server):
        await store.set_base_url(BASE)
        server.add("POST", "/api/auth/login", json={"session_token": "tok-1", "user": USER})
        user = await orchestrator.login("  alice ", "password1")
        assert user.username == "alice"
        assert await store.get_session_token() == "tok-1"

    @pytest.mark.asyncio
    async def test_login_requires_input(self, orchestrator, server):
        with pytest.raises(LoginValidationError, match="username and password"):
            await orchestrator.login("alice", "")
        assert server.requests == []

    @pytest.mark.asyncio
    async def test_login_rejection_keeps_existing_session(self, orchestrator, store, server):
        await store.set_base_url(BASE)
        await store.set_session_token("still-valid")
        server.add("POST", "/api/auth/login", 401, json={"detail": "Invalid credentials"})
        with pytest.raises(AuthInvalidError):
            await orchestrator.login("alice", "wrong")
        assert await store.get_session_token() == "still-valid"

    @pytest.mark.asyncio
    async def test_login_unreachable(self, orchestrator, store, server):
        await store.set_base_url(BASE)
        server.add("POST", "/api/auth/login", raises=httpx.ConnectError)
        with pytest.raises(NetworkUnreachableError):
            await orchestrator.login("alice", "password1")
        assert orchestrator.state.status == "checking_auth"

    @pytest.mark.asyncio
    async def test_enrollment_offer_accepted(self, orchestrator, store, server, gate):
        await store.set_base_url(BASE)
        server.add("POST", "/api/auth/login", json={"session_token": "tok-1", "user": USER})
        offered: list[str] = []

        async def _offer(name: str) -> bool:
            offered.append(name)
            return True

        await orchestrator.login("alice", "password1", offer_biometric=_offer)

        assert offered == ["Touch ID"]
        assert await gate.is_enabled() is True
        assert (await gate.load_credentials()).username == "alice"

    @pytest.mark.asyncio
    async def test_enrollment_offer_declined(self, orchestrator, store, server, gate):
        await store.set_base_url(BASE)
        server.add("POST", "/api/auth/login", json={"session_token": "tok-1", "user": USER})

        async def _decline(name: str) -> bool:
            return False

        await orchestrator.login("alice", "password1", offer_biometric=_decline)
        assert await gate.is_enabled() is False
        assert await gate.load_credentials() is None

    @pytest.mark.asyncio
    async def test_no_offer_without_enrolled_biometrics(
        self, orchestrator, store, server, biometric_backend,
    ):
        await store.set_base_url(BASE)
        server.add("POST", "/api/auth/login", json={"session_token": "tok-1", "user": USER})
        biometric_backend.enrolled = False
        offered: list[str] = []

        async def _offer(name: str) -> bool:
            offered.append(name)
            return True

        await orchestrator.login("alice", "password1", offer_biometric=_offer)
        assert offered == []


class TestSignup:
    @pytest.mark.asyncio
    async def test_signup(self, orchestrator, store, server):
        await store.set_base_url(BASE)
        server.add("POST", "/api/auth/register", 201, json={"session_token": "tok-s", "user": USER})
        user = await orchestrator.signup(
            "alice", "alice@example.com", "password1", "password1", full_name="  ",
        )
        assert user.username == "alice"
        assert orchestrator.state.is_authenticated
        assert await store.get_session_token() == "tok-s"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("args, message", [
        (("", "a@b.co", "password1", "password1"), "required fields"),
        (("alice", "a@b.co", "short", "short"), "at least 8"),
        (("alice", "a@b.co", "password1", "password2"), "do not match"),
        (("alice", "not-an-email", "password1", "password1"), "valid email"),
    ])
    async def test_validation(self, orchestrator, server, args, message):
        with pytest.raises(SignupValidationError, match=message):
            await orchestrator.signup(*args)
        assert server.requests == []

    @pytest.mark.asyncio
    async def test_server_detail_surfaces(self, orchestrator, store, server):
        await store.set_base_url(BASE)
        server.add("POST", "/api/auth/register", 400, json={"detail": "Username already registered"})
        with pytest.raises(ApiValidationError, match="Username already registered"):
            await orchestrator.signup("alice", "alice@example.com", "password1", "password1")


# ── Logout ──────────────────────────────────────────────────


class TestLogout:
    @pytest.mark.asyncio
    async def test_logout(self, orchestrator, store, server, factory):
        await store.set_base_url(BASE)
        await store.set_session_token("tok-1")
        server.add("POST", "/api/auth/logout", json={"ok": True})
        await factory.get_instance()

        await orchestrator.logout()

        assert orchestrator.state == AuthState.needs_auth()
        assert await store.get_session_token() is None
        assert factory.cached_instance is None
        sent = server.calls("POST", "/api/auth/logout")[0]
        assert sent.headers["Authorization"] == "Bearer tok-1"

    @pytest.mark.asyncio
    async def test_logout_ignores_server_errors(self, orchestrator, store, server):
        await store.set_base_url(BASE)
        await store.set_session_token("tok-1")
        server.add("POST", "/api/auth/logout", 500, json={"detail": "boom"})
        await orchestrator.logout()
        assert orchestrator.state.status == "needs_auth"
        assert await store.get_session_token() is None

    @pytest.mark.asyncio
    async def test_logout_keeps_biometric_enrollment(self, orchestrator, store, gate):
        await gate.enroll("alice", "password1")
        await orchestrator.logout()
        assert await gate.is_enabled() is True


# ── Settings ────────────────────────────────────────────────


class TestSettings:
    @pytest.mark.asyncio
    async def test_configure_and_forget_server(self, orchestrator, store):
        assert await orchestrator.configure_server("https://pantry.home/") is True
        assert await store.get_base_url() == "https://pantry.home"
        await orchestrator.forget_server()
        assert await store.get_base_url() is None

    @pytest.mark.asyncio
    async def test_configure_server_rejects_bad_url(self, orchestrator):
        with pytest.raises(InvalidServerUrlError):
            await orchestrator.configure_server("pantry.home")

    @pytest.mark.asyncio
    async def test_disable_biometric(self, orchestrator, gate):
        await gate.enroll("alice", "password1")
        await orchestrator.disable_biometric()
        assert await gate.load_credentials() is None
        assert await gate.is_enabled() is False


class TestBuildOrchestrator:
    def test_wires_components(self, store, settings):
        orchestrator = build_orchestrator(settings, store=store)
        assert isinstance(orchestrator, AuthOrchestrator)
        assert orchestrator.factory.store is store
        assert orchestrator.biometric.store is store
        assert orchestrator.settings is settings
