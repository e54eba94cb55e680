# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics — single source of truth for all metric objects.
Imported by services and middleware. Never instantiated in controllers.
"""

from prometheus_client import Counter, Gauge, Histogram

# ── HTTP Metrics (used by middleware) ──
REQUEST_COUNT = Counter(
    "gigcalendar_requests_total",
    "Total HTTP requests to the gig calendar API",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "gigcalendar_request_duration_seconds",
    "Request latency in seconds",
    ["method", "endpoint"],
)
HTTP_ERRORS = Counter(
    "gigcalendar_http_errors_total",
    "Total HTTP error responses",
    ["method", "endpoint", "status"],
)

# ── Business Metrics (updated by service layer only) ──
MUTATIONS_TOTAL = Counter(
    "gigcalendar_mutations_total",
    "Total successful collection mutations",
    ["collection", "operation"],
)
INVARIANT_REJECTIONS = Counter(
    "gigcalendar_invariant_rejections_total",
    "Mutations rejected because they would break a collection invariant",
    ["collection"],
)
LOGIN_ATTEMPTS = Counter(
    "gigcalendar_login_attempts_total",
    "Login attempts by outcome",
    ["outcome"],
)

# ── Live-update channel ──
BROADCASTS_TOTAL = Counter(
    "gigcalendar_broadcasts_total",
    "Full-collection snapshots published",
    ["collection"],
)
BROADCAST_DELIVERY_FAILURES = Counter(
    "gigcalendar_broadcast_delivery_failures_total",
    "Snapshots that could not be handed to a subscriber",
)
LIVE_SUBSCRIBERS = Gauge(
    "gigcalendar_live_subscribers",
    "Currently connected live-update subscribers",
)
