"""Flask extension guarding routes with Azure AD token verification.

Security Model:
1. Extract the token from the request (header or cookie)
2. Run the verification pipeline (kid lookup, signature, claims)
3. Store verified claims in ``flask.g.jwt`` for the route
4. Convert auth errors to HTTP 401 via ``abort``

Views are wrapped in a coroutine, so Flask must be installed with its
``async`` extra. Both sync and async views can be decorated.
"""

from __future__ import annotations

import inspect
import logging
from functools import wraps
from typing import TYPE_CHECKING, Any, Final

from flask import Flask, abort, g

from .errors import AuthError, AzureJwtError
from .extractors import BearerExtractor

if TYPE_CHECKING:
    from .config import VerificationOptions
    from .protocols import Extractor, TokenVerifier, ViewFunc

logger = logging.getLogger(__name__)

_EXT_KEY: Final[str] = "azure_jwt_verify"
"""Flask extensions registry key for AuthExtension."""


class AuthExtension:
    """
    Flask decorator glue for token authentication.

    Pattern:
        auth = AuthExtension(verifier)
        auth.init_app(app)

    Usage:
        @app.get("/me")
        @auth.require()
        def me():
            return {"sub": g.jwt["sub"]}

    Error mapping:
        - ``MissingToken``  -> 401 ("Missing Authorization header", ...)
        - ``AzureJwtError`` -> 401, description carries the ErrorKind name
        - anything else     -> 401 ("Authentication failed")
    """

    def __init__(
        self,
        verifier: TokenVerifier,
        options: VerificationOptions | None = None,
        extractor: Extractor | None = None,
    ) -> None:
        self._verifier: TokenVerifier = verifier
        self._options = options
        self._extractor: Extractor = extractor or BearerExtractor()

    def init_app(
        self,
        app: Flask,
        *,
        verifier: TokenVerifier | None = None,
        options: VerificationOptions | None = None,
        extractor: Extractor | None = None,
    ) -> None:
        """Register the extension on ``app``, optionally swapping collaborators."""
        if verifier is not None:
            self._verifier = verifier
        if options is not None:
            self._options = options
        if extractor is not None:
            self._extractor = extractor

        app.extensions[_EXT_KEY] = self

    def require(self, options: VerificationOptions | None = None):
        """Decorator rejecting requests without a valid token.

        Args:
            options: Per-route options (e.g. a different audience). Falls back
                to the extension's options, then the verifier's.

        Side Effects:
            - Writes verified claims to ``flask.g.jwt`` before calling the view.
            - Ends the request with 401 on any AuthError.
        """

        def decorator(view: ViewFunc) -> ViewFunc:
            @wraps(view)
            async def wrapper(*args: Any, **kwargs: Any) -> Any:
                try:
                    token = self._extractor.extract()
                    g.jwt = await self._verifier.verify(token, options or self._options)
                except AzureJwtError as e:
                    logger.info("Rejected token: %s (%s)", e.kind.value, e.message)
                    abort(e.error_code, description=e.kind.value)
                except AuthError as e:
                    abort(e.error_code, description=e.description)
                except Exception:
                    logger.exception("Token verification failed unexpectedly")
                    abort(401, description="Authentication failed")

                if inspect.iscoroutinefunction(view):
                    return await view(*args, **kwargs)
                return view(*args, **kwargs)

            return wrapper

        return decorator
