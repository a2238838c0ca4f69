"""Protocol definitions and shared types.

Structural interfaces (PEP 544) for the seams of the verification pipeline:
- Key resolution (discovery client)
- Signature verification (the JWT library)
- Token verification (used by the Flask extension)
- Token extraction from requests

Any class implementing the required methods satisfies the protocol, which
keeps the pipeline easy to drive from tests with fakes.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias

if TYPE_CHECKING:
    from .config import VerificationOptions
    from .key_set import KeySet

# ============================================================================
# Type Aliases
# ============================================================================

Claims: TypeAlias = Mapping[str, Any]
"""The decoded and verified JWT payload."""

DecodedHeader: TypeAlias = Mapping[str, Any]
"""The unverified JWT header, read before any signature check."""

ViewFunc: TypeAlias = Callable[..., Any]
"""Flask view function."""


# ============================================================================
# Core Protocols
# ============================================================================


class KeyProvider(Protocol):
    """Resolves the provider's current key set."""

    async def fetch(self, options: VerificationOptions) -> KeySet:
        """Return the key set, from cache or the discovery endpoint.

        Raises:
            AzureJwtError: ERROR_FETCHING_KEYS or INVALID_DISCOVERY_RESPONSE.
        """
        ...


class SignatureVerifier(Protocol):
    """The cryptographic verification primitive.

    Given the raw token, the PEM certificate block of the matched key and the
    effective options, returns the verified claims.
    """

    def verify(
        self, token: str, certificate: str, options: VerificationOptions
    ) -> Claims:
        """Raises AzureJwtError(SIGNATURE_VERIFICATION_FAILED) on any failure.

        Called from a worker thread, so implementations must not touch the
        event loop.
        """
        ...


class TokenVerifier(Protocol):
    """Full token verification, as consumed by the Flask extension."""

    async def verify(
        self, token: str, options: VerificationOptions | None = None
    ) -> Claims:
        ...


class Extractor(Protocol):
    """Pulls the raw JWT out of the current Flask request."""

    def extract(self) -> str:
        """Raises MissingToken when no token is present."""
        ...
