"""
MovieGo API: Recovery and Drain Middleware
==========================================

RecoveryMiddleware
    Catches any exception that escaped the handler and the inner middleware,
    logs it with method, URL and stack, and answers with the generic 500
    envelope plus `Connection: close` so the client does not reuse a
    connection whose state is unknown.

ShutdownDrainMiddleware
    Once shutdown has begun, new requests on kept-alive connections get a
    503 envelope with `Connection: close` instead of starting work that the
    process may not live long enough to finish.
"""

import logging
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from moviego.exceptions import ServiceUnavailableError
from moviego.responses import error_response, server_error_response

logger = logging.getLogger(__name__)


class RecoveryMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(
                "[%s] Unhandled %s during %s %s",
                getattr(request.state, "request_id", ""),
                type(exc).__name__,
                request.method,
                request.url.path,
                exc_info=True,
                extra={"request_method": request.method, "request_url": str(request.url)},
            )
            return server_error_response()


class ShutdownDrainMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, is_draining: Callable[[], bool]):
        super().__init__(app)
        self._is_draining = is_draining

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if self._is_draining():
            return error_response(
                ServiceUnavailableError(),
                headers={"Connection": "close", "Retry-After": "1"},
            )
        return await call_next(request)
