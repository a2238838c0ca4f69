"""Select the signing key named by a token and render it as PEM."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from .errors import AzureJwtError, ErrorKind

if TYPE_CHECKING:
    from .key_set import KeySet, SigningKey

PEM_HEADER: Final[str] = "-----BEGIN CERTIFICATE-----"
PEM_FOOTER: Final[str] = "-----END CERTIFICATE-----"


def find_key(keys: KeySet, kid: str) -> SigningKey | None:
    """First key whose ``kid`` equals ``kid`` exactly, in provider order."""
    return next((key for key in keys if key.kid == kid), None)


def to_pem(key: SigningKey) -> str:
    """Wrap the certificate body of ``key`` in PEM armour, unmodified."""
    return f"{PEM_HEADER}\n{key.x5c}\n{PEM_FOOTER}"


def resolve_certificate(keys: KeySet, kid: str) -> str:
    """Return the PEM certificate block of the key matching ``kid``.

    Raises:
        AzureJwtError: NOT_MATCHING_KEY if no key carries that identifier.
    """
    key = find_key(keys, kid)
    if key is None:
        raise AzureJwtError(
            ErrorKind.NOT_MATCHING_KEY,
            "A key matching your token kid cannot be found in the published keys",
        )
    return to_pem(key)
