# PantryPal - Household Inventory Client
# Copyright (C) 2026 PantryPal Authors
# SPDX-License-Identifier: Apache-2.0

"""Client-side checks run before login/signup reach the network."""

from __future__ import annotations

import re

from pantrypal.exceptions import LoginValidationError, SignupValidationError

MIN_PASSWORD_LENGTH = 8

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def validate_login(username: str, password: str) -> str:
    """Return the trimmed username or raise :class:`LoginValidationError`."""
    username = (username or "").strip()
    if not username or not (password or "").strip():
        raise LoginValidationError("Please enter username and password")
    return username


def validate_signup(
    username: str,
    email: str,
    password: str,
    confirm_password: str,
) -> tuple[str, str]:
    """Return trimmed ``(username, email)`` or raise :class:`SignupValidationError`."""
    username = (username or "").strip()
    email = (email or "").strip()
    if not username or not email or not (password or "").strip():
        raise SignupValidationError("Please fill in all required fields")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise SignupValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )
    if password != confirm_password:
        raise SignupValidationError("Passwords do not match")
    if not _EMAIL_RE.match(email):
        raise SignupValidationError("Please enter a valid email address")
    return username, email
