# ErrorEnvelopeMiddleware and pantry exception handlers
import logging
import time
import uuid

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from pantry.errors import (
    DuplicateNameError,
    InferenceConfigError,
    InferenceExhaustedError,
    PantryError,
    RecordNotFoundError,
)

log = logging.getLogger("pantry.http")


class ErrorEnvelopeMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        start = time.time()
        request_id = request.headers.get("x-request-id", str(uuid.uuid4())[:8])
        request.state.rid = request_id
        try:
            response: Response = await call_next(request)
        except Exception as exc:
            log.exception("Unhandled error on %s [%s]", request.url.path, request_id)
            return JSONResponse(
                status_code=500,
                content={"error": str(exc), "path": str(request.url.path)},
                headers={"x-request-id": request_id},
            )
        response.headers["x-request-id"] = request_id
        response.headers["server-timing"] = f"total;dur={(time.time() - start) * 1000:.2f}"
        return response


def _envelope(status: int, kind: str, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": kind, "detail": str(exc)})


def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DuplicateNameError)
    async def _duplicate(request: Request, exc: DuplicateNameError):
        return _envelope(409, "duplicate_name", exc)

    @app.exception_handler(RecordNotFoundError)
    async def _not_found(request: Request, exc: RecordNotFoundError):
        return _envelope(404, "not_found", exc)

    @app.exception_handler(InferenceExhaustedError)
    async def _exhausted(request: Request, exc: InferenceExhaustedError):
        return _envelope(502, "inference_failed", exc)

    @app.exception_handler(InferenceConfigError)
    async def _ai_config(request: Request, exc: InferenceConfigError):
        return _envelope(503, "inference_unavailable", exc)

    @app.exception_handler(PantryError)
    async def _pantry(request: Request, exc: PantryError):
        log.error("Pantry error on %s: %s", request.url.path, exc)
        return _envelope(500, type(exc).__name__, exc)
