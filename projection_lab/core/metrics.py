"""Prometheus metrics.

Request latency is tracked next to the number of database round trips each
request needed, so strategies can be compared from a scrape as well as from
the ``X-DB-Round-Trips`` header.
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

_REQUEST_LABELS = ("method", "route", "status")

# Local databases answer in well under a second; the tail buckets catch stalls.
_LATENCY_BUCKETS = (0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 1.0, 5.0)
_ROUND_TRIP_BUCKETS = (0, 1, 2, 3, 4, 5, 6, 8, 10, 15, 20, 30)

HTTP_REQUESTS_TOTAL = Counter(
    "projection_lab_http_requests_total",
    "Total number of HTTP requests.",
    _REQUEST_LABELS,
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "projection_lab_http_request_duration_seconds",
    "HTTP request duration in seconds.",
    _REQUEST_LABELS,
    buckets=_LATENCY_BUCKETS,
)

DB_ROUND_TRIPS = Histogram(
    "projection_lab_db_round_trips",
    "Database round trips issued while serving one HTTP request.",
    ("method", "route"),
    buckets=_ROUND_TRIP_BUCKETS,
)

USER_CREATIONS_TOTAL = Counter(
    "projection_lab_user_creations_total",
    "Users created, by creation strategy.",
    ("strategy",),
)

USER_CREATION_ROUND_TRIPS = Histogram(
    "projection_lab_user_creation_round_trips",
    "Database round trips spent creating one user, by creation strategy.",
    ("strategy",),
    buckets=_ROUND_TRIP_BUCKETS,
)


def observe_http_request(
    *,
    method: str,
    route: str,
    status_code: int,
    duration_ms: float,
    round_trips: int,
) -> None:
    status = str(status_code)
    HTTP_REQUESTS_TOTAL.labels(method, route, status).inc()
    HTTP_REQUEST_DURATION_SECONDS.labels(method, route, status).observe(duration_ms / 1000.0)
    DB_ROUND_TRIPS.labels(method=method, route=route).observe(round_trips)


def observe_user_created(strategy: str, round_trips: int | None) -> None:
    """Count a created user; round trips are recorded only when a counter was open."""
    USER_CREATIONS_TOTAL.labels(strategy=strategy).inc()
    if round_trips is not None:
        USER_CREATION_ROUND_TRIPS.labels(strategy=strategy).observe(round_trips)
