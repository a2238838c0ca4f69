"""
Azure AD token verification.

High-level flow (per call)
--------------------------
1. ``verify(token, options)`` checks the token is a non-empty string.
2. The unverified header is decoded to read ``kid``.
3. ``AzureDiscoveryKeyProvider.fetch`` returns the published key set, from
   the process-wide ``KeySetCache`` while fresh, otherwise from the discovery
   endpoint with bounded retries on 5xx/network failures.
4. The key matching ``kid`` is wrapped as a PEM certificate.
5. PyJWT verifies the signature and the issuer/audience/expiry claims.

Every failure is an ``AzureJwtError`` whose ``kind`` is one ``ErrorKind``.

Example usage
-------------

.. code-block:: python

    import azure_jwt_verify

    options = azure_jwt_verify.VerificationOptions(
        issuer="https://login.microsoftonline.com/<tenant>/v2.0",
        audience="api://my-api",
    )
    claims = await azure_jwt_verify.verify(token, options)

    # Flask
    auth = AuthExtension(AzureTokenVerifier(options=options))

    @app.get("/protected")
    @auth.require()
    def protected_route():
        return {"sub": g.jwt["sub"]}
"""

from __future__ import annotations

# Cache stores
from .cache_stores import KeySetCache

# Configuration
from .config import DISCOVERY_URL, VerificationOptions

# Errors
from .errors import AuthError, AzureJwtError, ErrorKind, MissingToken

# Extractors
from .extractors import BearerExtractor, CookieExtractor

# Flask extension
from .flask_extension import AuthExtension

# Key providers
from .key_providers import AzureDiscoveryKeyProvider

# Key set
from .key_set import KeySet, SigningKey, parse_key_set

# Matching
from .matcher import resolve_certificate

# Protocols
from .protocols import (
    Claims,
    DecodedHeader,
    Extractor,
    KeyProvider,
    SignatureVerifier,
    TokenVerifier,
    ViewFunc,
)

# Verifier
from .verifier import (
    AzureTokenVerifier,
    PyJWTSignatureVerifier,
    VerificationResult,
)

_default_cache = KeySetCache()
_default_verifier = AzureTokenVerifier(
    key_provider=AzureDiscoveryKeyProvider(cache=_default_cache)
)


async def verify(token: str, options: VerificationOptions | None = None) -> Claims:
    """Verify ``token`` with the process-wide verifier and key cache."""
    return await _default_verifier.verify(token, options)


def invalidate_cache() -> None:
    """Drop the process-wide cached key set, forcing the next call to fetch."""
    _default_cache.invalidate()


__all__ = [
    # Entry points
    "verify",
    "invalidate_cache",
    # Errors
    "AuthError",
    "AzureJwtError",
    "ErrorKind",
    "MissingToken",
    # Configuration
    "DISCOVERY_URL",
    "VerificationOptions",
    # Protocols
    "Claims",
    "DecodedHeader",
    "Extractor",
    "KeyProvider",
    "SignatureVerifier",
    "TokenVerifier",
    "ViewFunc",
    # Key set
    "KeySet",
    "SigningKey",
    "parse_key_set",
    "resolve_certificate",
    # Cache stores
    "KeySetCache",
    # Key providers
    "AzureDiscoveryKeyProvider",
    # Verifier
    "AzureTokenVerifier",
    "PyJWTSignatureVerifier",
    "VerificationResult",
    # Extractors
    "BearerExtractor",
    "CookieExtractor",
    # Flask extension
    "AuthExtension",
]
