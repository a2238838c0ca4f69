"""Signing key records as published by the discovery endpoint.

The endpoint answers with a document of the form::

    {"keys": [{"kty": "RSA", "use": "sig", "kid": "...", "x5t": "...",
               "n": "...", "e": "AQAB", "x5c": ["MIIC..."]}]}

Only ``kid`` and ``x5c`` take part in verification; the remaining fields
are kept for callers that want to inspect the set.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, TypeAlias

KeySet: TypeAlias = "tuple[SigningKey, ...]"
"""Keys in the order the provider returned them."""


@dataclass(frozen=True, slots=True)
class SigningKey:
    """One published signing key.

    Attributes:
        kid: Key identifier, matched against the token header.
        x5c: Base64 DER certificate body, exactly as published.
        kty, use, x5t, n, e: Informational JWK fields.
    """

    kid: str
    x5c: str
    kty: str = ""
    use: str = ""
    x5t: str = ""
    n: str = ""
    e: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SigningKey:
        """Build a key from one JWK entry.

        Raises:
            ValueError: If the entry has no certificate body.
        """
        x5c = data.get("x5c")
        # Azure publishes the chain as a list; the leaf certificate comes first.
        if isinstance(x5c, list):
            x5c = x5c[0] if x5c else None
        if not isinstance(x5c, str) or not x5c:
            raise ValueError("key has no certificate body")

        kid = data.get("kid")
        return cls(
            kid=kid if isinstance(kid, str) else "",
            x5c=x5c,
            kty=str(data.get("kty", "")),
            use=str(data.get("use", "")),
            x5t=str(data.get("x5t", "")),
            n=str(data.get("n", "")),
            e=str(data.get("e", "")),
        )


def parse_key_set(body: str | bytes) -> KeySet:
    """Parse and validate a discovery response body.

    The whole document is rejected when any key lacks a certificate body.

    Raises:
        ValueError: If the body is not JSON, has no ``keys`` list, or
            contains an invalid key.
    """
    document = json.loads(body)
    if not isinstance(document, dict):
        raise ValueError("discovery document is not a JSON object")

    keys = document.get("keys")
    if not isinstance(keys, list):
        raise ValueError("discovery document has no 'keys' list")

    parsed = []
    for entry in keys:
        if not isinstance(entry, dict):
            raise ValueError("key entry is not a JSON object")
        parsed.append(SigningKey.from_dict(entry))
    return tuple(parsed)
