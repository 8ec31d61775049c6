"""
API Middleware.

Request ID injection with structured access logging, and a per-client
rate limiter for the upload endpoints.
"""

from __future__ import annotations

import time
from collections import defaultdict
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from src.logging_config import generate_trace_id, get_logger, trace_id_var

logger = get_logger(__name__)

RATE_LIMIT_WINDOW = 60  # seconds
RATE_LIMIT_MAX = 60     # requests per window per IP
EXEMPT_PATHS = frozenset({"/", "/health"})


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag every request with an ID that follows it through the logs."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_trace_id()
        token = trace_id_var.set(request_id)
        start = time.monotonic()

        try:
            response = await call_next(request)
        finally:
            trace_id_var.reset(token)

        elapsed_ms = round((time.monotonic() - start) * 1000, 1)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = str(elapsed_ms)

        logger.info(
            "api_request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            elapsed_ms=elapsed_ms,
            request_id=request_id,
        )
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Sliding-window limiter per client IP.

    State is in-process; a multi-instance deployment would keep the
    counters in Redis next to the job queue.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_requests: int = RATE_LIMIT_MAX,
        window_seconds: int = RATE_LIMIT_WINDOW,
    ) -> None:
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._hits: dict[str, list[float]] = defaultdict(list)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()

        hits = [t for t in self._hits[client_ip] if now - t < self.window_seconds]
        if len(hits) >= self.max_requests:
            self._hits[client_ip] = hits
            logger.warning("rate_limit_exceeded", client_ip=client_ip, path=request.url.path)
            return Response(
                content='{"detail": "Rate limit exceeded"}',
                status_code=429,
                media_type="application/json",
                headers={"Retry-After": str(self.window_seconds)},
            )

        hits.append(now)
        self._hits[client_ip] = hits
        return await call_next(request)
