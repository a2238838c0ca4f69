"""Verification options.

VerificationOptions bundles two groups of settings:

- key discovery: where to fetch keys, how often to retry, whether and how
  long to cache them, how long to wait for the endpoint;
- claim checks forwarded unmodified to PyJWT: issuer, audience, clock skew
  tolerance, allowed algorithms and any extra PyJWT ``options``.

Options can be built directly or read from the environment (a ``.env``
file is honoured through python-dotenv):

.. code-block:: bash

    AZURE_JWT_AUDIENCE=api://my-api
    AZURE_JWT_ISSUER=https://login.microsoftonline.com/<tenant>/v2.0
    AZURE_JWT_CACHE_TTL=600
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Final

from dotenv import find_dotenv, load_dotenv

DISCOVERY_URL: Final[str] = "https://login.microsoftonline.com/common/discovery/keys"
"""Azure AD public key discovery endpoint."""

DEFAULT_MAX_RETRIES: Final[int] = 2
DEFAULT_CACHE_TTL: Final[float] = 5 * 60
DEFAULT_TIMEOUT: Final[float] = 5.0

_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})
_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True, slots=True)
class VerificationOptions:
    """Configuration for one verification call.

    Attributes:
        discovery_url: Endpoint publishing the signing keys.
        max_retries: Additional attempts after a transient discovery failure
            (5xx or network error). 2 means up to 3 requests in total.
        use_cache: Serve keys from the shared cache while it is fresh.
        cache_ttl: Cache lifetime in seconds.
        timeout: Discovery request timeout in seconds.

        issuer: Expected ``iss`` claim. None disables the check.
        audience: Expected ``aud`` claim(s). With None, PyJWT rejects any
            token that carries ``aud`` ("Invalid audience"), which includes
            every Azure AD access token. Set it, or pass
            ``jwt_options={"verify_aud": False}`` to skip the check.
        leeway: Clock skew tolerance in seconds for exp/nbf/iat.
        algorithms: Allowed signing algorithms. Azure AD signs with RS256.
        jwt_options: Extra PyJWT ``options`` (e.g. ``{"require": ["exp"]}``).

    Security Invariants:
        - Keep ``algorithms`` an explicit allowlist of asymmetric algorithms
        - Set issuer and audience in production
    """

    discovery_url: str = DISCOVERY_URL
    max_retries: int = DEFAULT_MAX_RETRIES
    use_cache: bool = True
    cache_ttl: float = DEFAULT_CACHE_TTL
    timeout: float = DEFAULT_TIMEOUT

    issuer: str | None = None
    audience: str | tuple[str, ...] | None = None
    leeway: float = 0
    algorithms: tuple[str, ...] = ("RS256",)
    jwt_options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.discovery_url:
            raise ValueError("discovery_url cannot be empty")
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.cache_ttl <= 0:
            raise ValueError(f"cache_ttl must be positive, got {self.cache_ttl}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if not self.algorithms:
            raise ValueError("algorithms cannot be empty")

    def with_overrides(self, **changes: Any) -> VerificationOptions:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    @classmethod
    def from_env(
        cls,
        prefix: str = "AZURE_JWT_",
        environ: Mapping[str, str] | None = None,
    ) -> VerificationOptions:
        """Build options from environment variables.

        Unset variables keep their defaults. When ``environ`` is omitted,
        a ``.env`` file is loaded into ``os.environ`` first.

        Raises:
            ValueError: If a variable cannot be parsed.
        """
        if environ is None:
            load_dotenv(find_dotenv(usecwd=True))
            environ = os.environ

        def get(name: str) -> str | None:
            value = environ.get(prefix + name)
            if value is None or not value.strip():
                return None
            return value.strip()

        kwargs: dict[str, Any] = {}

        if (url := get("DISCOVERY_URL")) is not None:
            kwargs["discovery_url"] = url
        if (retries := get("MAX_RETRIES")) is not None:
            kwargs["max_retries"] = _parse_int(prefix + "MAX_RETRIES", retries)
        if (use_cache := get("USE_CACHE")) is not None:
            kwargs["use_cache"] = _parse_bool(prefix + "USE_CACHE", use_cache)
        if (ttl := get("CACHE_TTL")) is not None:
            kwargs["cache_ttl"] = _parse_float(prefix + "CACHE_TTL", ttl)
        if (timeout := get("TIMEOUT")) is not None:
            kwargs["timeout"] = _parse_float(prefix + "TIMEOUT", timeout)
        if (issuer := get("ISSUER")) is not None:
            kwargs["issuer"] = issuer
        if (audience := get("AUDIENCE")) is not None:
            audiences = _split(audience)
            kwargs["audience"] = audiences[0] if len(audiences) == 1 else audiences
        if (leeway := get("LEEWAY")) is not None:
            kwargs["leeway"] = _parse_float(prefix + "LEEWAY", leeway)
        if (algorithms := get("ALGORITHMS")) is not None:
            kwargs["algorithms"] = _split(algorithms)

        return cls(**kwargs)


def _split(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def _parse_float(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")
