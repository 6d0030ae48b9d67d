# PantryPal - Household Inventory Client
# Copyright (C) 2026 PantryPal Authors
# SPDX-License-Identifier: Apache-2.0
"""Global test fixtures for the PantryPal client.

Provides filesystem isolation, an in-memory keyring, a scripted HTTP
server (``httpx.MockTransport``) and a controllable biometric backend.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Awaitable, Callable, Union

import httpx
import pytest
from keyring.backend import KeyringBackend
from keyring.errors import KeyringError, PasswordDeleteError

from pantrypal.biometric import BiometricBackend, BiometricType


# ── Keyring ───────────────────────────────────────────────


class MemoryKeyring(KeyringBackend):
    """Process-local keyring backend."""

    priority = 1

    def __init__(self) -> None:
        super().__init__()
        self.entries: dict[tuple[str, str], str] = {}
        self.fail = False

    def _check(self) -> None:
        if self.fail:
            raise KeyringError("keyring locked")

    def get_password(self, service: str, username: str) -> str | None:
        self._check()
        return self.entries.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        self._check()
        self.entries[(service, username)] = password

    def delete_password(self, service: str, username: str) -> None:
        self._check()
        try:
            del self.entries[(service, username)]
        except KeyError:
            raise PasswordDeleteError("not found") from None


# ── Biometric ─────────────────────────────────────────────


class FakeBiometricBackend(BiometricBackend):
    """Scriptable biometric hardware.  ``raise_on`` names calls that blow up."""

    def __init__(self) -> None:
        self.hardware = True
        self.enrolled = True
        self.types: set[BiometricType] = {BiometricType.FINGERPRINT}
        self.accept = True
        self.raise_on: set[str] = set()
        self.prompts: list[str] = []

    def _maybe_raise(self, name: str) -> None:
        if name in self.raise_on:
            raise RuntimeError(f"{name} unavailable")

    async def has_hardware(self) -> bool:
        self._maybe_raise("has_hardware")
        return self.hardware

    async def is_enrolled(self) -> bool:
        self._maybe_raise("is_enrolled")
        return self.enrolled

    async def supported_types(self) -> set[BiometricType]:
        self._maybe_raise("supported_types")
        return set(self.types)

    async def authenticate(self, prompt: str, **kwargs: Any) -> bool:
        self.prompts.append(prompt)
        self._maybe_raise("authenticate")
        return self.accept


# ── HTTP ──────────────────────────────────────────────────

Route = Callable[[httpx.Request], Union[httpx.Response, Awaitable[httpx.Response]]]


class FakeServer:
    """Route table behind an ``httpx.MockTransport``.

    Unrouted requests get a 404.  Every request is recorded in order.
    Routes may be coroutine functions; MockTransport awaits them.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Route] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        status: int = 200,
        json: Any = None,
        *,
        raises: type[httpx.TransportError] | None = None,
    ) -> None:
        def _route(request: httpx.Request) -> httpx.Response:
            if raises is not None:
                raise raises("scripted failure", request=request)
            return httpx.Response(status, json=json)

        self.routes[(method.upper(), path)] = _route

    def route(self, method: str, path: str, handler: Route) -> None:
        self.routes[(method.upper(), path)] = handler

    def handle(self, request: httpx.Request) -> Any:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"detail": "Not Found"})
        return handler(request)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method.upper() and r.url.path == path
        ]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


# ── Fixtures ──────────────────────────────────────────────


@pytest.fixture
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolated runtime data directory with a clean config cache."""
    from pantrypal.config import invalidate_cache

    d = tmp_path / ".pantrypal"
    d.mkdir()
    monkeypatch.setenv("PANTRYPAL_DATA_DIR", str(d))
    invalidate_cache()
    yield d
    invalidate_cache()


@pytest.fixture
def keyring_backend() -> MemoryKeyring:
    return MemoryKeyring()


@pytest.fixture
def store(data_dir: Path, keyring_backend: MemoryKeyring):
    from pantrypal.storage import CredentialStore, PlainStore, SecureStore

    return CredentialStore(
        PlainStore(data_dir / "store.json"),
        SecureStore("pantrypal-test", backend=keyring_backend),
    )


@pytest.fixture
def settings():
    from pantrypal.config import ClientSettings

    return ClientSettings(
        profile="mobile",
        request_timeout=3.0,
        probe_timeout=3.0,
        keyring_service="pantrypal-test",
    )


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def factory(store, settings, server: FakeServer):
    from pantrypal.api.client import ApiClientFactory

    return ApiClientFactory(store, settings, transport=server.transport())


@pytest.fixture
def biometric_backend() -> FakeBiometricBackend:
    return FakeBiometricBackend()


@pytest.fixture
def gate(store, biometric_backend: FakeBiometricBackend):
    from pantrypal.biometric import BiometricGate

    return BiometricGate(store, biometric_backend)


@pytest.fixture
def orchestrator(store, gate, factory, settings):
    from pantrypal.auth.orchestrator import AuthOrchestrator

    return AuthOrchestrator(store, gate, factory, settings)
