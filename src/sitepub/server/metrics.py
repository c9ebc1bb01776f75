"""Prometheus request metrics for the site listener"""

from prometheus_client import REGISTRY, CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from prometheus_client.registry import CollectorRegistry


REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Number of get requests.",
    ["path"],
)

RESPONSE_DURATION = Histogram(
    "http_response_duration_seconds",
    "Duration of HTTP responses.",
    ["path"],
)

NOT_FOUND_LABEL = "not_found"


def record_request(path: str, duration: float) -> None:
    """Count one request and observe its duration under the sanitised path label."""
    REQUESTS_TOTAL.labels(path=path).inc()
    RESPONSE_DURATION.labels(path=path).observe(duration)


def exposition(registry: CollectorRegistry = REGISTRY) -> tuple[bytes, str]:
    """Return (body, content type) in the Prometheus text format."""
    return generate_latest(registry), CONTENT_TYPE_LATEST
