"""
MovieGo API: Authentication Middleware
======================================

What:  Resolves the `Authorization: Bearer <token>` header to a user and
       attaches it to the request (see context.py).

Outcomes:
    no header                      → anonymous user, request continues
    not "Bearer <token>"           → 401 invalid or missing authentication token
    unknown / expired / wrong scope→ 401 invalid or missing authentication token
    store timeout                  → 503 (TransientStoreError)
    resolved                       → that user, request continues

Every response carries `Vary: Authorization` because its content depends
on who asked.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from moviego.context import set_request_user
from moviego.exceptions import InvalidTokenError, MovieGoError
from moviego.responses import error_response
from moviego.schemas.user import ANONYMOUS_USER
from moviego.services.token_service import TokenService

logger = logging.getLogger(__name__)


def _add_vary(response: Response, value: str) -> Response:
    existing = response.headers.get("Vary")
    if not existing:
        response.headers["Vary"] = value
    elif value.lower() not in [v.strip().lower() for v in existing.split(",")]:
        response.headers["Vary"] = f"{existing}, {value}"
    return response


class AuthenticateMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, tokens: TokenService):
        super().__init__(app)
        self.tokens = tokens

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        header = request.headers.get("Authorization")
        if not header:
            set_request_user(request, ANONYMOUS_USER)
            return _add_vary(await call_next(request), "Authorization")

        parts = header.split(" ")
        if len(parts) != 2 or parts[0] != "Bearer":
            return _add_vary(error_response(InvalidTokenError()), "Authorization")

        try:
            user = await self.tokens.authenticate(parts[1])
        except MovieGoError as exc:
            if not isinstance(exc, InvalidTokenError):
                logger.warning("Authentication lookup failed: %s", type(exc).__name__)
            return _add_vary(error_response(exc), "Authorization")

        set_request_user(request, user)
        return _add_vary(await call_next(request), "Authorization")
