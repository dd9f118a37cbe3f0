"""
MovieGo API: Metrics Middleware
===============================

What:  Feeds the injected MetricsCollector: one `requests_received` per
       request, one `responses_sent{status}` per response and the elapsed
       time. It never changes the response.
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from moviego.services.metrics import MetricsCollector


class MetricsMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, collector: MetricsCollector):
        super().__init__(app)
        self.collector = collector

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        self.collector.requests_received.inc()
        self.collector.in_flight.inc()
        start = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            self.collector.in_flight.dec()
            self.collector.record(status, time.perf_counter() - start)
