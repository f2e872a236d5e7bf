"""
Prometheus metrics for the pantry service
Counts sync outcomes, inference attempts and duplicate-name rejections
"""

import time
from fastapi import Request
from fastapi.responses import Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

REQUESTS_TOTAL = Counter(
    "pantry_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

REQUEST_DURATION = Histogram(
    "pantry_http_request_seconds",
    "Request duration in seconds",
    ["method", "path"],
)

SYNC_RECORDS_TOTAL = Counter(
    "pantry_sync_records_total",
    "Records processed by reconcile",
    ["collection", "status"],
)

INFERENCE_ATTEMPTS_TOTAL = Counter(
    "pantry_inference_attempts_total",
    "Inference candidate attempts by outcome",
    ["outcome"],
)

DUPLICATES_REJECTED = Counter(
    "pantry_duplicate_names_total",
    "Writes rejected by the duplicate-name guard",
    ["collection"],
)

_enabled = False


def configure(enabled: bool) -> None:
    global _enabled
    _enabled = bool(enabled)


def is_enabled() -> bool:
    return _enabled


async def metrics_endpoint():
    """Prometheus metrics endpoint"""
    if not _enabled:
        return Response(b"metrics disabled", media_type="text/plain")
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


def metrics_middleware(app):
    """Add metrics middleware to FastAPI app"""

    @app.middleware("http")
    async def _metrics(request: Request, call_next):
        if not _enabled:
            return await call_next(request)
        start = time.time()
        response = await call_next(request)

        route = request.scope.get("route")
        path = getattr(route, "path", request.url.path)
        REQUESTS_TOTAL.labels(
            method=request.method,
            path=path,
            status=str(response.status_code),
        ).inc()

        REQUEST_DURATION.labels(
            method=request.method,
            path=path,
        ).observe(time.time() - start)

        return response


def record_sync(collection: str, status: str):
    """Record one reconcile outcome ('synced', 'changed' or 'failed')"""
    if _enabled:
        SYNC_RECORDS_TOTAL.labels(collection=collection, status=status).inc()


def record_inference_attempt(outcome: str):
    if _enabled:
        INFERENCE_ATTEMPTS_TOTAL.labels(outcome=outcome).inc()


def record_duplicate(collection: str):
    """Record duplicate-name rejection metric"""
    if _enabled:
        DUPLICATES_REJECTED.labels(collection=collection).inc()
