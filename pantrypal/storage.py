# PantryPal - Household Inventory Client
# Copyright (C) 2026 PantryPal Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of the PantryPal client, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Credential store: plain and secure persisted key/value tiers.

Two tiers back the client's persisted state:

- :class:`PlainStore` keeps non-sensitive connection settings in a JSON
  file inside the data directory (``API_BASE_URL``, ``API_KEY``,
  ``BIOMETRIC_ENABLED``).
- :class:`SecureStore` keeps secrets in the OS keyring
  (``SESSION_TOKEN``, ``USER_CREDENTIALS``).

Every operation is async and never raises: failures are logged and the
call fails closed (``None`` for reads, ``False`` for writes).  Removing a
key that does not exist is a successful no-op.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import keyring
from keyring.errors import KeyringError, PasswordDeleteError
from pydantic import ValidationError

from pantrypal._async_compat import run_sync
from pantrypal.auth.models import Credentials
from pantrypal.exceptions import InvalidServerUrlError, StorageError

logger = logging.getLogger("pantrypal.storage")

# ── Persisted key names (contract with the other clients) ────

API_BASE_URL = "API_BASE_URL"
API_KEY = "API_KEY"
BIOMETRIC_ENABLED = "BIOMETRIC_ENABLED"
SESSION_TOKEN = "SESSION_TOKEN"
USER_CREDENTIALS = "USER_CREDENTIALS"


# ── Tiers ────────────────────────────────────────────────────


class KeyValueStore:
    """Async key/value contract shared by both tiers.

    Subclasses implement the blocking ``_read`` / ``_write`` / ``_delete``
    primitives, which may raise :class:`StorageError`.  The public methods
    run them off the event loop and fail closed.
    """

    tier = "base"

    async def get(self, key: str) -> str | None:
        try:
            return await run_sync(self._read, key)
        except StorageError as exc:
            logger.warning("%s store: read of %s failed: %s", self.tier, key, exc)
            return None

    async def set(self, key: str, value: str) -> bool:
        try:
            await run_sync(self._write, key, value)
            return True
        except StorageError as exc:
            logger.warning("%s store: write of %s failed: %s", self.tier, key, exc)
            return False

    async def remove(self, key: str) -> bool:
        try:
            await run_sync(self._delete, key)
            return True
        except StorageError as exc:
            logger.warning("%s store: delete of %s failed: %s", self.tier, key, exc)
            return False

    def _read(self, key: str) -> str | None:
        raise NotImplementedError

    def _write(self, key: str, value: str) -> None:
        raise NotImplementedError

    def _delete(self, key: str) -> None:
        raise NotImplementedError


class PlainStore(KeyValueStore):
    """JSON-file store for non-sensitive settings.

    Writes are atomic (temp file + ``os.replace``) and the file is kept at
    mode 0o600 since it may hold an API key.
    """

    tier = "plain"

    def __init__(self, path: Path | None = None) -> None:
        if path is None:
            from pantrypal.paths import get_store_path

            path = get_store_path()
        self.path = path
        self._lock = threading.Lock()

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("Corrupt store file %s, starting empty: %s", self.path, exc)
            return {}
        except OSError as exc:
            raise StorageError(f"cannot read {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            logger.warning("Store file %s is not a JSON object, starting empty", self.path)
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _dump(self, data: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(".tmp")
            tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as exc:
            raise StorageError(f"cannot write {self.path}: {exc}") from exc
        try:
            self.path.chmod(0o600)
        except OSError:
            pass

    def _read(self, key: str) -> str | None:
        with self._lock:
            return self._load().get(key)

    def _write(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._dump(data)

    def _delete(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key not in data:
                return
            del data[key]
            self._dump(data)


class SecureStore(KeyValueStore):
    """OS keyring store for secrets (session token, saved credentials)."""

    tier = "secure"

    def __init__(self, service: str = "pantrypal", backend: Any = None) -> None:
        self.service = service
        # Any object with the keyring backend API; None = the active keyring.
        self._backend = backend if backend is not None else keyring

    def _read(self, key: str) -> str | None:
        try:
            return self._backend.get_password(self.service, key)
        except (KeyringError, OSError) as exc:
            raise StorageError(str(exc)) from exc
        except Exception as exc:
            # Platform backends (D-Bus, Windows vault, ...) leak their own errors.
            raise StorageError(f"{type(exc).__name__}: {exc}") from exc

    def _write(self, key: str, value: str) -> None:
        try:
            self._backend.set_password(self.service, key, value)
        except (KeyringError, OSError) as exc:
            raise StorageError(str(exc)) from exc
        except Exception as exc:
            raise StorageError(f"{type(exc).__name__}: {exc}") from exc

    def _delete(self, key: str) -> None:
        try:
            self._backend.delete_password(self.service, key)
        except PasswordDeleteError:
            # Missing entry: nothing to delete.
            return
        except (KeyringError, OSError) as exc:
            raise StorageError(str(exc)) from exc
        except Exception as exc:
            raise StorageError(f"{type(exc).__name__}: {exc}") from exc


# ── Facade ───────────────────────────────────────────────────


@dataclass(frozen=True)
class ServerSnapshot:
    """The three inputs an API client instance is bound to."""

    base_url: str | None
    api_key: str | None
    session_token: str | None


def normalize_base_url(url: str) -> str:
    """Trim *url*, drop trailing slashes and require an http(s) scheme."""
    clean = (url or "").strip().rstrip("/")
    if not clean:
        raise InvalidServerUrlError("Please enter a server URL")
    if not clean.startswith(("http://", "https://")):
        raise InvalidServerUrlError("URL must start with http:// or https://")
    return clean


class CredentialStore:
    """Typed access to every persisted value the session core uses."""

    def __init__(self, plain: KeyValueStore, secure: KeyValueStore) -> None:
        self.plain = plain
        self.secure = secure

    @classmethod
    def default(cls, keyring_service: str = "pantrypal") -> CredentialStore:
        return cls(PlainStore(), SecureStore(keyring_service))

    # -- server connection ------------------------------------

    async def get_base_url(self) -> str | None:
        return await self.plain.get(API_BASE_URL) or None

    async def set_base_url(self, url: str) -> bool:
        """Persist a normalized base URL.

        Raises:
            InvalidServerUrlError: before touching storage, for bad input.
        """
        return await self.plain.set(API_BASE_URL, normalize_base_url(url))

    async def clear_base_url(self) -> bool:
        return await self.plain.remove(API_BASE_URL)

    async def get_api_key(self) -> str | None:
        return await self.plain.get(API_KEY) or None

    async def set_api_key(self, api_key: str | None) -> bool:
        """Persist a trimmed API key; an empty key removes the stored one."""
        api_key = (api_key or "").strip()
        if not api_key:
            return await self.plain.remove(API_KEY)
        return await self.plain.set(API_KEY, api_key)

    async def clear_api_key(self) -> bool:
        return await self.plain.remove(API_KEY)

    # -- session ----------------------------------------------

    async def get_session_token(self) -> str | None:
        return await self.secure.get(SESSION_TOKEN) or None

    async def set_session_token(self, token: str) -> bool:
        return await self.secure.set(SESSION_TOKEN, token)

    async def clear_session_token(self) -> bool:
        return await self.secure.remove(SESSION_TOKEN)

    async def snapshot(self) -> ServerSnapshot:
        """Read all three client inputs fresh from storage."""
        return ServerSnapshot(
            base_url=await self.get_base_url(),
            api_key=await self.get_api_key(),
            session_token=await self.get_session_token(),
        )

    # -- biometric --------------------------------------------

    async def get_biometric_enabled(self) -> bool:
        return await self.plain.get(BIOMETRIC_ENABLED) == "true"

    async def set_biometric_enabled(self, enabled: bool) -> bool:
        return await self.plain.set(BIOMETRIC_ENABLED, "true" if enabled else "false")

    async def get_credentials(self) -> Credentials | None:
        raw = await self.secure.get(USER_CREDENTIALS)
        if not raw:
            return None
        try:
            return Credentials.model_validate_json(raw)
        except ValidationError:
            logger.warning("Saved credentials are unreadable; ignoring them")
            return None

    async def set_credentials(self, credentials: Credentials) -> bool:
        return await self.secure.set(USER_CREDENTIALS, credentials.model_dump_json())

    async def clear_credentials(self) -> bool:
        return await self.secure.remove(USER_CREDENTIALS)
