# PantryPal - Household Inventory Client
# Copyright (C) 2026 PantryPal Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of the PantryPal client, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""API client factory: one authoritative HTTP client per process.

:class:`ApiClientFactory` owns the process-wide :class:`ApiClient`.  Each
client is bound to an immutable :class:`~pantrypal.storage.ServerSnapshot`
of ``(base_url, api_key, session_token)`` and its headers are computed once
from that snapshot.

Invalidation contract:

- :meth:`ApiClientFactory.reset_instance` is the primary path and must be
  called after login, signup, logout and any server/API-key change.
- :meth:`ApiClientFactory.get_instance` re-reads all three inputs from
  storage on every call and rebuilds when they differ from the cached
  client's snapshot.  This catches callers that forget to reset.
- A 401 response clears the stored API key and session token and drops
  the cached client.  The error still reaches the caller.

Replaced clients are closed as soon as no request is running on them, so
a client returned by :meth:`ApiClientFactory.get_instance` is only valid
until the next reset.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any

import httpx

from pantrypal.config import ClientSettings, resolve_settings
from pantrypal.exceptions import (
    ApiError,
    ApiValidationError,
    AuthInvalidError,
    NetworkUnreachableError,
    RequestTimeoutError,
    ServerError,
    ServerNotConfiguredError,
)
from pantrypal.logging_config import set_request_id
from pantrypal.storage import CredentialStore, ServerSnapshot

logger = logging.getLogger("pantrypal.api")


def build_headers(snapshot: ServerSnapshot) -> dict[str, str]:
    """Fixed headers for a client bound to *snapshot*."""
    headers = {"Content-Type": "application/json"}
    if snapshot.api_key:
        headers["X-API-Key"] = snapshot.api_key
    if snapshot.session_token:
        headers["Authorization"] = f"Bearer {snapshot.session_token}"
    return headers


class ApiClient:
    """HTTP client bound to one snapshot of the connection settings."""

    def __init__(
        self,
        snapshot: ServerSnapshot,
        *,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not snapshot.base_url:
            raise ServerNotConfiguredError("No server URL configured")
        self.snapshot = snapshot
        self.timeout = timeout
        self.headers = build_headers(snapshot)
        self.in_flight = 0
        self._http = httpx.AsyncClient(
            base_url=snapshot.base_url,
            headers=self.headers,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self.snapshot.base_url or ""

    @property
    def session_token(self) -> str | None:
        return self.snapshot.session_token

    @property
    def is_closed(self) -> bool:
        return self._http.is_closed

    async def send(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        kwargs: dict[str, Any] = {}
        if json is not None:
            kwargs["json"] = json
        if params:
            kwargs["params"] = params
        if timeout is not None:
            kwargs["timeout"] = timeout
        return await self._http.request(method, path, **kwargs)

    async def aclose(self) -> None:
        await self._http.aclose()


def _error_detail(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return response.text or None
    if isinstance(body, dict) and "detail" in body:
        detail = body["detail"]
        return detail if isinstance(detail, str) else str(detail)
    return None


def parse_response(response: httpx.Response) -> Any:
    """Return the decoded body of a 2xx *response* or raise the mapped error."""
    status = response.status_code
    if 200 <= status < 300:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    detail = _error_detail(response)
    message = detail or f"HTTP {status} {response.reason_phrase}"
    if status == 401:
        raise AuthInvalidError(
            detail or "Authentication required", status_code=status, detail=detail,
        )
    if 400 <= status < 500:
        raise ApiValidationError(message, status_code=status, detail=detail)
    if status >= 500:
        raise ServerError(message, status_code=status, detail=detail)
    raise ApiError(message, status_code=status, detail=detail)


class ApiClientFactory:
    """Owner of the process-wide :class:`ApiClient`."""

    def __init__(
        self,
        store: CredentialStore,
        settings: ClientSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.store = store
        self.settings = settings or resolve_settings()
        self._transport = transport
        self._instance: ApiClient | None = None
        self._retired: list[ApiClient] = []
        self._generation = 0
        self._lock = asyncio.Lock()

    # ── Instance lifecycle ───────────────────────────────────

    @property
    def cached_instance(self) -> ApiClient | None:
        return self._instance

    async def get_instance(self) -> ApiClient:
        """Return a client matching the current stored settings.

        Raises:
            ServerNotConfiguredError: when no base URL is stored.
        """
        async with self._lock:
            while True:
                generation = self._generation
                snapshot = await self.store.snapshot()
                if generation != self._generation:
                    # reset_instance() ran while we were reading storage.
                    continue

                current = self._instance
                if current is not None and current.snapshot == snapshot:
                    return current

                fresh = ApiClient(
                    snapshot,
                    timeout=self.settings.request_timeout,
                    transport=self._transport,
                )
                if current is not None:
                    logger.debug("Stored settings changed; rebuilding API client")
                    self._retire(current)
                else:
                    logger.debug("Building API client for %s", snapshot.base_url)
                self._instance = fresh
                await self._close_idle_retired()
                return fresh

    def reset_instance(self) -> None:
        """Discard the cached client so the next call rebuilds it."""
        self._generation += 1
        if self._instance is not None:
            self._retire(self._instance)
            self._instance = None
            logger.debug("API client reset")

    def _retire(self, client: ApiClient) -> None:
        # Closed by _close_idle_retired() once its in-flight requests finish.
        self._retired.append(client)

    async def _close_idle_retired(self) -> None:
        idle = [c for c in self._retired if c.in_flight == 0]
        if not idle:
            return
        self._retired = [c for c in self._retired if c.in_flight > 0]
        for client in idle:
            if not client.is_closed:
                await client.aclose()
        logger.debug("Closed %d retired API client(s)", len(idle))

    async def aclose(self) -> None:
        clients = self._retired + ([self._instance] if self._instance else [])
        self._retired = []
        self._instance = None
        for client in clients:
            if not client.is_closed:
                await client.aclose()

    # ── 401 handling ─────────────────────────────────────────

    async def _handle_unauthorized(self, client: ApiClient) -> None:
        """Clear credentials rejected by the server and drop *client*."""
        stored = await self.store.snapshot()
        # Only clear values that are still the ones the server just rejected.
        if stored.session_token and stored.session_token == client.snapshot.session_token:
            await self.store.clear_session_token()
        if stored.api_key and stored.api_key == client.snapshot.api_key:
            await self.store.clear_api_key()
        if self._instance is client:
            self.reset_instance()
        logger.info("Server rejected credentials (401); local session cleared")

    # ── Requests ─────────────────────────────────────────────

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
        invalidate_on_401: bool = True,
    ) -> Any:
        """Send a request through the current client and decode the reply.

        ``invalidate_on_401=False`` is for credential submissions (login,
        register), where a 401 means "wrong password", not "stale session".

        Raises:
            ServerNotConfiguredError: no base URL stored.
            RequestTimeoutError: the bounded timeout expired.
            NetworkUnreachableError: connection-level failure.
            AuthInvalidError / ApiValidationError / ServerError: HTTP errors.
        """
        client = await self.get_instance()
        set_request_id(uuid.uuid4().hex[:12])
        logger.debug("%s %s", method.upper(), path)

        client.in_flight += 1
        try:
            try:
                response = await client.send(
                    method.upper(), path, json=body, params=params, timeout=timeout,
                )
            except httpx.TimeoutException as exc:
                effective = timeout if timeout is not None else client.timeout
                raise RequestTimeoutError(f"Request timed out after {effective}s") from exc
            except httpx.TransportError as exc:
                raise NetworkUnreachableError(
                    f"Cannot reach server at {client.base_url}: {type(exc).__name__}",
                ) from exc

            if response.status_code == 401 and invalidate_on_401:
                await self._handle_unauthorized(client)
            return parse_response(response)
        finally:
            client.in_flight -= 1
            if client.in_flight == 0 and client in self._retired:
                await self._close_idle_retired()

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, body: Any = None, **kwargs: Any) -> Any:
        return await self.request("POST", path, body, **kwargs)

    async def put(self, path: str, body: Any = None, **kwargs: Any) -> Any:
        return await self.request("PUT", path, body, **kwargs)

    async def patch(self, path: str, body: Any = None, **kwargs: Any) -> Any:
        return await self.request("PATCH", path, body, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)

    # ── Connection settings ──────────────────────────────────

    async def set_base_url(self, url: str) -> bool:
        """Store a new server URL and drop the client bound to the old one."""
        saved = await self.store.set_base_url(url)
        self.reset_instance()
        return saved

    async def clear_base_url(self) -> bool:
        removed = await self.store.clear_base_url()
        self.reset_instance()
        return removed

    async def set_api_key(self, api_key: str | None) -> bool:
        saved = await self.store.set_api_key(api_key)
        self.reset_instance()
        return saved

    async def remove_api_key(self) -> bool:
        removed = await self.store.clear_api_key()
        self.reset_instance()
        return removed
