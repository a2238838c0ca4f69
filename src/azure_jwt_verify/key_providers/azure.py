"""
Azure AD discovery key provider.

Fetches the published signing keys from the discovery endpoint with
cache-first lookup and a bounded retry on transient failures.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

import httpx

from ..cache_stores import KeySetCache
from ..errors import AzureJwtError, ErrorKind
from ..key_set import parse_key_set
from ..protocols import KeyProvider

if TYPE_CHECKING:
    from ..config import VerificationOptions
    from ..key_set import KeySet

logger = logging.getLogger(__name__)

_FETCH_FAILED: Final[str] = "An error occurred retrieving public keys from the discovery endpoint"


class AzureDiscoveryKeyProvider(KeyProvider):
    """
    Resolves the signing key set from a discovery endpoint.

    Resolution Strategy
    -------------------
    1) Cache lookup (fast path)
        - If ``use_cache`` is on and the cached set is fresh → return it.
          No request, no retry bookkeeping.

    2) Fetch loop, at most ``max_retries + 1`` requests
        - 200 with a valid key set → done.
        - 200 with a malformed body → INVALID_DISCOVERY_RESPONSE, no retry.
        - 5xx or a transport error (refused, timeout, DNS) → next attempt.
        - Any other status → ERROR_FETCHING_KEYS, no retry.
        - Out of attempts → ERROR_FETCHING_KEYS wrapping the last error.

    3) Cache write
        - A fetched set replaces the cached one when ``use_cache`` is on.

    The cache is not consulted again between attempts. Concurrent misses
    may fetch twice; the last write wins.

    Parameters
    ----------
    cache : KeySetCache | None
        Shared cache. A private one is created when omitted.

    transport : httpx.AsyncBaseTransport | None
        Transport handed to ``httpx.AsyncClient``. Tests pass an
        ``httpx.MockTransport`` here.

    Example
    -------
    provider = AzureDiscoveryKeyProvider(cache=KeySetCache())
    keys = await provider.fetch(VerificationOptions())
    """

    def __init__(
        self,
        cache: KeySetCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._cache = cache if cache is not None else KeySetCache()
        self._transport = transport

    @property
    def cache(self) -> KeySetCache:
        return self._cache

    async def fetch(self, options: VerificationOptions) -> KeySet:
        if options.use_cache:
            cached = self._cache.get(options.cache_ttl)
            if cached is not None:
                logger.debug("Serving %d signing keys from cache", len(cached))
                return cached

        keys = await self._fetch_with_retries(options)

        if options.use_cache:
            self._cache.put(keys)
        return keys

    async def _fetch_with_retries(self, options: VerificationOptions) -> KeySet:
        url = options.discovery_url
        attempts = options.max_retries + 1
        last_error: Exception | None = None

        async with httpx.AsyncClient(
            timeout=options.timeout, transport=self._transport
        ) as client:
            for attempt in range(1, attempts + 1):
                logger.debug(
                    "Fetching signing keys from %s (attempt %d/%d)", url, attempt, attempts
                )
                try:
                    response = await client.get(url)
                except httpx.RequestError as e:
                    logger.warning("Key discovery request to %s failed: %s", url, e)
                    last_error = e
                    continue

                if response.status_code == 200:
                    return self._parse(response.content, url)

                last_error = httpx.HTTPStatusError(
                    f"Server answered with status code {response.status_code}",
                    request=response.request,
                    response=response,
                )
                if not response.is_server_error:
                    logger.error(
                        "Key discovery at %s answered %d, not retrying",
                        url,
                        response.status_code,
                    )
                    raise AzureJwtError(
                        ErrorKind.ERROR_FETCHING_KEYS, _FETCH_FAILED, last_error
                    ) from last_error

                logger.warning(
                    "Key discovery at %s answered %d", url, response.status_code
                )

        logger.error("Key discovery at %s failed after %d attempts", url, attempts)
        raise AzureJwtError(
            ErrorKind.ERROR_FETCHING_KEYS, _FETCH_FAILED, last_error
        ) from last_error

    @staticmethod
    def _parse(body: bytes, url: str) -> KeySet:
        try:
            return parse_key_set(body)
        except ValueError as e:
            # json.JSONDecodeError is a ValueError too
            logger.error("Discovery response from %s rejected: %s", url, e)
            raise AzureJwtError(
                ErrorKind.INVALID_DISCOVERY_RESPONSE,
                f"API call to discovery URL {url} returned an invalid response",
                e,
            ) from e
