import logging
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest, start_http_server

logger = logging.getLogger(__name__)

SUCCESS = "success"

DURATION_BUCKETS = (0.1, 0.5, 1, 2, 5, 10, 30)


class CrawlMetrics:
    """Prometheus metrics for spider activity.

    Every processed URL bumps `golwarc_crawler_requests_total` with its outcome
    (`success` or a failure kind), failures also bump
    `golwarc_crawler_errors_total`, and each HTTP fetch is timed in
    `golwarc_crawler_duration_seconds`.

    Each instance owns its registry unless one is passed, so several spiders
    (or tests) can coexist without duplicate-registration errors.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None, crawler_type: str = "spider"):
        self.registry = registry if registry is not None else CollectorRegistry()
        self.crawler_type = crawler_type

        self.requests_total = Counter(
            "golwarc_crawler_requests_total",
            "Total number of crawler requests",
            ["crawler_type", "status"],
            registry=self.registry,
        )
        self.duration_seconds = Histogram(
            "golwarc_crawler_duration_seconds",
            "Duration of crawler requests in seconds",
            ["crawler_type"],
            buckets=DURATION_BUCKETS,
            registry=self.registry,
        )
        self.errors_total = Counter(
            "golwarc_crawler_errors_total",
            "Total number of crawler errors",
            ["crawler_type", "error_type"],
            registry=self.registry,
        )

    def record_request(self, status: str) -> None:
        self.requests_total.labels(crawler_type=self.crawler_type, status=status).inc()

    def record_duration(self, seconds: float) -> None:
        self.duration_seconds.labels(crawler_type=self.crawler_type).observe(seconds)

    def record_error(self, error_type: str) -> None:
        self.errors_total.labels(crawler_type=self.crawler_type, error_type=error_type).inc()

    def export(self) -> bytes:
        """Current metrics in the Prometheus text exposition format."""
        return generate_latest(self.registry)

    def serve(self, port: int, addr: str = "0.0.0.0"):
        """Expose the registry on `http://addr:port/metrics` from a daemon thread."""
        result = start_http_server(port, addr=addr, registry=self.registry)
        logger.info("Prometheus metrics server started on port %s", port)
        return result
