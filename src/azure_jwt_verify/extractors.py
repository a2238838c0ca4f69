"""Read the raw token from the current Flask request.

- BearerExtractor: ``Authorization: Bearer <token>`` (APIs)
- CookieExtractor: a named cookie (browser apps; pair with CSRF protection)
"""

from __future__ import annotations

from flask import request

from .errors import MissingToken


class BearerExtractor:
    """Token from the Authorization header, Bearer scheme (case-insensitive)."""

    def extract(self) -> str:
        header = request.headers.get("Authorization", "").strip()
        if not header:
            raise MissingToken("Missing Authorization header")

        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer":
            raise MissingToken("Invalid authorization scheme (expected 'Bearer')")

        token = token.strip()
        if not token:
            raise MissingToken("Bearer token is empty")
        return token


class CookieExtractor:
    """Token from the cookie named ``cookie_name``."""

    def __init__(self, cookie_name: str = "access_token") -> None:
        if not cookie_name or not cookie_name.strip():
            raise ValueError("cookie_name cannot be empty")
        self._name = cookie_name

    def extract(self) -> str:
        token = request.cookies.get(self._name)
        if not token:
            raise MissingToken(f"Missing cookie '{self._name}'")
        return token
