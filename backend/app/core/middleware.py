from __future__ import annotations

import logging
from time import perf_counter

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)


class RequestTimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        started = perf_counter()
        response = await call_next(request)
        elapsed_ms = (perf_counter() - started) * 1000
        response.headers.setdefault("X-Process-Time-Ms", f"{elapsed_ms:.1f}")
        logger.debug("%s %s -> %d in %.1f ms", request.method, request.url.path, response.status_code, elapsed_ms)
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject bodies above ``max_bytes`` before a large roster reaches the engine."""

    def __init__(self, app, *, max_bytes: int) -> None:
        super().__init__(app)
        self._max_bytes = max(1, max_bytes)

    async def dispatch(self, request: Request, call_next) -> Response:
        raw_length = request.headers.get("content-length")
        if not raw_length:
            return await call_next(request)
        try:
            length = int(raw_length)
        except ValueError:
            length = 0
        if length > self._max_bytes:
            logger.warning("Rejected %s %s: body of %d bytes", request.method, request.url.path, length)
            return JSONResponse(
                status_code=413,
                content={
                    "message": "Request body too large",
                    "details": {"content_length": length, "max_bytes": self._max_bytes},
                },
            )
        return await call_next(request)
