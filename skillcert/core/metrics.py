"""Application metrics using the Prometheus client library.

All metrics are defined here so the inventory of what the service measures
lives in one place.  Other modules import a metric and increment or observe
it where the behavior happens.  Prometheus scrapes them from GET /metrics.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Credential lifecycle metrics
# ---------------------------------------------------------------------------

CREDENTIALS_MINTED = Counter(
    "credentials_minted_total",
    "Credentials minted by authorized issuers",
)

CREDENTIALS_REVOKED = Counter(
    "credentials_revoked_total",
    "Credentials revoked, by who revoked them",
    ["actor"],  # "issuer" or "admin"
)

CREDENTIAL_VERIFICATIONS = Counter(
    "credential_verifications_total",
    "Verification checks by outcome",
    ["result"],  # "valid", "revoked", "expired", "issuer_unauthorized"
)

LIFECYCLE_REJECTIONS = Counter(
    "credential_lifecycle_rejections_total",
    "Operations refused by a precondition check",
    ["code"],  # error code, e.g. "already_revoked"
)

ISSUER_AUTHORIZATION_CHANGES = Counter(
    "issuer_authorization_changes_total",
    "Issuer registry toggles",
    ["action"],  # "authorized" or "revoked"
)

NOTIFICATION_QUEUE_DEPTH = Gauge(
    "notification_queue_depth",
    "Lifecycle notifications waiting for the relay worker",
)
