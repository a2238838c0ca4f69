"""Authentication errors.

This module defines the exception types raised while verifying Azure AD
tokens. All errors inherit from AuthError to allow catch-all error handling.

Every failure of the verification pipeline is an AzureJwtError tagged with
exactly one ErrorKind, so callers can branch on ``err.kind`` rather than on
a class hierarchy:

.. code-block:: python

    try:
        claims = await verifier.verify(token)
    except AzureJwtError as err:
        match err.kind:
            case ErrorKind.ERROR_FETCHING_KEYS:
                ...  # provider unavailable, maybe retry later
            case _:
                ...  # token rejected

Security Note:
    Messages describe the failure class only. Tokens and key material are
    never embedded in them.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of verification failure kinds."""

    INVALID_TOKEN = "InvalidToken"
    """The token is not a non-empty string."""

    TOKEN_NOT_DECODED = "TokenNotDecoded"
    """The token is not a well-formed JWT (three base64url segments)."""

    MISSING_KEY_ID = "MissingKeyID"
    """The token header carries no ``kid``."""

    ERROR_FETCHING_KEYS = "ErrorFetchingKeys"
    """The discovery endpoint failed, after retries where retryable."""

    INVALID_DISCOVERY_RESPONSE = "InvalidDiscoveryResponse"
    """The discovery endpoint answered 200 with a malformed key set."""

    NOT_MATCHING_KEY = "NotMatchingKey"
    """No published key matches the token ``kid``."""

    SIGNATURE_VERIFICATION_FAILED = "SignatureVerificationFailed"
    """Signature or claims check failed (expired, wrong audience, ...)."""


class AuthError(Exception):
    """Base exception for all authentication failures.

    Attributes:
        error_code: HTTP status the Flask extension answers with.
        description: Short client-facing description.
    """

    error_code: int = 401

    @property
    def description(self) -> str:
        return str(self) or "Authentication failed"


class MissingToken(AuthError):  # noqa: N818
    """Raised when no token can be extracted from the request.

    This occurs when:
    - The Authorization header is missing or not "Bearer <token>"
    - The configured cookie is missing (cookie-based extraction)
    """


class AzureJwtError(AuthError):
    """A classified verification failure.

    Attributes:
        kind: The ErrorKind of the failure.
        message: Human-readable message.
        cause: Underlying exception, if any. Also chained as ``__cause__``
            when raised with ``raise ... from``.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause

    @property
    def code(self) -> str:
        """The kind's wire name, e.g. ``"NotMatchingKey"``."""
        return self.kind.value

    def __repr__(self) -> str:
        return f"AzureJwtError(kind={self.kind.value!r}, message={self.message!r})"
