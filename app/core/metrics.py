from __future__ import annotations

from contextlib import contextmanager

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

registry = CollectorRegistry(auto_describe=True)

ENTITY_OPERATIONS_TOTAL = Counter(
    "worldkeeper_entity_operations_total",
    "Entity mutations partitioned by entity kind and action.",
    ["kind", "action"],
    registry=registry,
)

CASCADE_DELETE_DURATION = Histogram(
    "worldkeeper_cascade_delete_duration_seconds",
    "Duration (seconds) of cascading deletes broken down by root kind.",
    ["kind"],
    registry=registry,
)

ACTIVITY_LOG_FAILURES = Counter(
    "worldkeeper_activity_log_failures_total",
    "Activity entries that could not be written, labeled by action.",
    ["action"],
    registry=registry,
)

IMAGE_UPLOADS_TOTAL = Counter(
    "worldkeeper_image_uploads_total",
    "Image uploads partitioned by result.",
    ["result"],
    registry=registry,
)

IMAGE_CLEANUPS_TOTAL = Counter(
    "worldkeeper_image_cleanups_total",
    "Image deletions from media storage partitioned by result.",
    ["result"],
    registry=registry,
)

IDENTITY_LOOKUPS_TOTAL = Counter(
    "worldkeeper_identity_lookups_total",
    "Bearer token lookups against the identity provider by status.",
    ["status"],
    registry=registry,
)


HTTP_REQUEST_DURATION = Histogram(
    "worldkeeper_http_request_duration_seconds",
    "HTTP request latency by method, route template and status code.",
    ["method", "route", "status"],
    registry=registry,
)


def observe_request(method: str, route: str, status: int, seconds: float) -> None:
    HTTP_REQUEST_DURATION.labels(method=method, route=route, status=str(status)).observe(seconds)


@contextmanager
def track_cascade_delete(kind: str):
    with CASCADE_DELETE_DURATION.labels(kind=kind).time():
        yield


def record_entity_operation(kind: str, action: str) -> None:
    ENTITY_OPERATIONS_TOTAL.labels(kind=kind, action=action).inc()


def record_activity_failure(action: str) -> None:
    ACTIVITY_LOG_FAILURES.labels(action=action).inc()


def record_image_upload(result: str) -> None:
    IMAGE_UPLOADS_TOTAL.labels(result=result).inc()


def record_image_cleanup(result: str) -> None:
    IMAGE_CLEANUPS_TOTAL.labels(result=result).inc()


def record_identity_lookup(status: str) -> None:
    IDENTITY_LOOKUPS_TOTAL.labels(status=status).inc()


def get_metrics_payload() -> bytes:
    return generate_latest(registry)
