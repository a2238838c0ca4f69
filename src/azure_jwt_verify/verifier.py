"""Azure AD token verification pipeline.

This module turns a raw token into verified claims:
- Checks the input is a non-empty string
- Reads the unverified header and extracts the key ID (kid)
- Resolves the key set via an injected KeyProvider and picks the matching
  certificate
- Verifies signature and claims with PyJWT
- Classifies every failure as an AzureJwtError with one ErrorKind

The pipeline is linear: each stage either hands its result to the next or
raises, and nothing but the shared key cache outlives a call.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import jwt
from cryptography import x509

from .config import VerificationOptions
from .errors import AzureJwtError, ErrorKind
from .key_providers import AzureDiscoveryKeyProvider
from .matcher import resolve_certificate
from .protocols import SignatureVerifier, TokenVerifier

if TYPE_CHECKING:
    from .protocols import Claims, DecodedHeader, KeyProvider

logger = logging.getLogger(__name__)


class PyJWTSignatureVerifier(SignatureVerifier):
    """Signature and claims check backed by PyJWT.

    The PEM certificate is loaded with ``cryptography`` and its public key
    handed to ``jwt.decode`` together with the pass-through options
    (algorithms, audience, issuer, leeway, extra PyJWT options).
    """

    def verify(
        self, token: str, certificate: str, options: VerificationOptions
    ) -> Claims:
        try:
            cert = x509.load_pem_x509_certificate(certificate.encode("ascii"))
            public_key = cert.public_key()
        except ValueError as e:
            raise AzureJwtError(
                ErrorKind.SIGNATURE_VERIFICATION_FAILED,
                f"Signing certificate could not be loaded: {e}",
                e,
            ) from e

        audience = options.audience
        if isinstance(audience, tuple):
            audience = list(audience)

        try:
            return jwt.decode(
                token,
                public_key,
                algorithms=list(options.algorithms),
                audience=audience,
                issuer=options.issuer,
                leeway=options.leeway,
                options=dict(options.jwt_options) or None,
            )
        except jwt.PyJWTError as e:
            # Expired, bad signature, iss/aud mismatch, algorithm not allowed
            raise AzureJwtError(
                ErrorKind.SIGNATURE_VERIFICATION_FAILED, str(e), e
            ) from e
        except Exception as e:
            # Key type the algorithm cannot use (EC/Ed25519 cert, HS256 allowed)
            raise AzureJwtError(
                ErrorKind.SIGNATURE_VERIFICATION_FAILED, str(e), e
            ) from e


@dataclass(frozen=True, slots=True)
class VerificationResult:
    """Outcome of ``try_verify``: exactly one of claims or error is set."""

    claims: Claims | None = None
    error: AzureJwtError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class AzureTokenVerifier(TokenVerifier):
    """Verifies Azure AD tokens against the provider's published keys.

    Architecture:
        1. Validate input (no I/O)
        2. Decode header, extract kid (no I/O, no crypto)
        3. Fetch key set via KeyProvider (cache or discovery endpoint)
        4. Match kid to a certificate
        5. Verify via SignatureVerifier (in a worker thread)

    Example:
        ```python
        verifier = AzureTokenVerifier(
            options=VerificationOptions(audience="api://my-api"),
        )

        try:
            claims = await verifier.verify(raw_token)
        except AzureJwtError as err:
            log.info("rejected: %s", err.kind.value)
        ```

    Attributes:
        _keys: KeyProvider resolving the key set.
        _signature: Verification primitive.
        _options: Options used when a call passes none.
    """

    def __init__(
        self,
        key_provider: KeyProvider | None = None,
        signature_verifier: SignatureVerifier | None = None,
        options: VerificationOptions | None = None,
    ) -> None:
        self._keys: KeyProvider = key_provider or AzureDiscoveryKeyProvider()
        self._signature: SignatureVerifier = (
            signature_verifier or PyJWTSignatureVerifier()
        )
        self._options = options or VerificationOptions()

    @property
    def options(self) -> VerificationOptions:
        return self._options

    async def verify(
        self, token: str, options: VerificationOptions | None = None
    ) -> Claims:
        """Verify ``token`` and return its claims.

        Args:
            token: Raw JWT.
            options: Per-call options; defaults to the verifier's options.

        Raises:
            AzureJwtError: With one of the ErrorKind values:
                INVALID_TOKEN, TOKEN_NOT_DECODED, MISSING_KEY_ID (no I/O done),
                ERROR_FETCHING_KEYS, INVALID_DISCOVERY_RESPONSE,
                NOT_MATCHING_KEY, SIGNATURE_VERIFICATION_FAILED.
        """
        opts = options or self._options

        if not isinstance(token, str) or not token:
            raise AzureJwtError(
                ErrorKind.INVALID_TOKEN, "Token provided must be a non-empty string"
            )

        header = _decode_header(token)

        kid = header.get("kid")
        if not kid or not isinstance(kid, str):
            raise AzureJwtError(
                ErrorKind.MISSING_KEY_ID,
                "The given JWT has no kid. Please double-check it is a valid Azure AD token.",
            )

        keys = await self._keys.fetch(opts)
        certificate = resolve_certificate(keys, kid)

        # RSA verification is CPU bound; keep it off the event loop
        claims = await asyncio.to_thread(
            self._signature.verify, token, certificate, opts
        )
        logger.debug("Token with kid %s verified", kid)
        return claims

    async def try_verify(
        self, token: str, options: VerificationOptions | None = None
    ) -> VerificationResult:
        """Like ``verify`` but returns failures as values."""
        try:
            claims = await self.verify(token, options)
        except AzureJwtError as e:
            logger.debug("Token rejected: %s", e.kind.value)
            return VerificationResult(error=e)
        return VerificationResult(claims=claims)


def _decode_header(token: str) -> DecodedHeader:
    try:
        return jwt.get_unverified_header(token)
    except jwt.DecodeError as e:
        raise AzureJwtError(
            ErrorKind.TOKEN_NOT_DECODED,
            "An error occurred decoding your JWT. Check that your token is a well-formed JWT",
            e,
        ) from e
    except jwt.InvalidTokenError as e:
        # PyJWT rejects a non-string kid while reading the header
        raise AzureJwtError(ErrorKind.MISSING_KEY_ID, str(e), e) from e
