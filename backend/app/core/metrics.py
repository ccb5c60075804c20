"""Prometheus collectors shared by the app and services"""

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "placement_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "placement_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)
AUTH_EVENTS = Counter(
    "placement_auth_events_total",
    "Authentication protocol outcomes",
    ["event", "outcome"],
)
