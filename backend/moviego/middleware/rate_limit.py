"""
MovieGo API: Rate Limiting Middleware
=====================================

What:  Rejects requests from client addresses whose token bucket is empty.
How:   Delegates to the injected RateLimiterRegistry (token bucket per
       address, see services/rate_limiter.py). When `enabled` is False every
       request passes straight through.

Caveat:
    The client address is the socket peer. Behind a reverse proxy, run
    uvicorn with --proxy-headers so `request.client` carries the original
    address from X-Forwarded-For.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from moviego.exceptions import RateLimitExceededError
from moviego.responses import error_response
from moviego.services.rate_limiter import RateLimiterRegistry

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    # API documentation should always be reachable
    EXCLUDED_PATHS = {"/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, registry: RateLimiterRegistry, enabled: bool = True):
        super().__init__(app)
        self.registry = registry
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self.enabled or request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        if not self.registry.allow(client_ip):
            logger.warning("Rate limit exceeded for %s", client_ip)
            return error_response(RateLimitExceededError(context={"client_ip": client_ip}))

        return await call_next(request)
