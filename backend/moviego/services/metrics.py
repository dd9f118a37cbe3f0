"""
MovieGo API: Request Metrics Collector
======================================

What:  Counters for requests received, responses sent (by status code) and
       cumulative processing time, exposed in Prometheus text format at
       GET /debug/metrics.
How:   Every collector owns a private `CollectorRegistry`, so two app
       instances (or two tests) never share or double-register metrics.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from moviego import __version__


class MetricsCollector:
    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry if registry is not None else CollectorRegistry()
        self.requests_received = Counter(
            "moviego_requests_received_total",
            "Requests that entered the handler stage",
            registry=self.registry,
        )
        self.responses_sent = Counter(
            "moviego_responses_sent_total",
            "Responses returned, by HTTP status code",
            ["status"],
            registry=self.registry,
        )
        self.processing_time = Counter(
            "moviego_processing_time_seconds_total",
            "Cumulative time spent producing responses",
            registry=self.registry,
        )
        self.in_flight = Gauge(
            "moviego_requests_in_flight",
            "Requests currently being processed",
            registry=self.registry,
        )
        self.build_info = Gauge(
            "moviego_build_info",
            "Constant 1, labelled with the running version",
            ["version"],
            registry=self.registry,
        )
        self.build_info.labels(version=__version__).set(1)

    def record(self, status_code: int, duration_seconds: float) -> None:
        self.responses_sent.labels(status=str(status_code)).inc()
        self.processing_time.inc(max(0.0, duration_seconds))

    def sample(self, name: str, **labels: str) -> float:
        """Current value of one sample; 0.0 when it has not been emitted yet."""
        value = self.registry.get_sample_value(name, labels or None)
        return value or 0.0

    def render(self) -> bytes:
        return generate_latest(self.registry)
