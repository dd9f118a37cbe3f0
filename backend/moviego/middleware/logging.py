"""
MovieGo API: Request Logging Middleware
=======================================

What:  One access log line per request: method, path, status, duration,
       request id and client address.
How:   The level follows the status class (5xx ERROR, 4xx WARNING, else
       INFO). The health check is skipped; load balancers poll it.

What we log vs what we DON'T log:
    ✅ method, path, status, duration, client address, request id
    ❌ request bodies (passwords), Authorization headers (bearer tokens)
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from moviego.middleware.request_id import request_id_var

logger = logging.getLogger("moviego.access")

QUIET_PATHS = {"/v1/healthcheck"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
