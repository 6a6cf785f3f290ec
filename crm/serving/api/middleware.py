"""
API Middleware

- RequestLoggingMiddleware: request id binding and timing
- RateLimitMiddleware: sliding-window limiter per client address
- SecurityHeadersMiddleware: static hardening headers
"""

import asyncio
import time
import uuid
from collections import deque
from typing import Callable, Deque, Dict, Iterable

import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the log context and log each request with its duration"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Request failed", method=request.method, path=request.url.path)
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding-window rate limiter.

    State lives in the worker process, so each gunicorn worker counts
    separately. Health probes are never limited.
    """

    def __init__(
        self,
        app,
        max_requests: int = 100,
        window_seconds: int = 60,
        exempt_prefixes: Iterable[str] = ("/api/v1/health",),
    ):
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.exempt_prefixes = tuple(exempt_prefixes)
        self._hits: Dict[str, Deque[float]] = {}
        self._last_sweep = time.monotonic()
        self._lock = asyncio.Lock()

    def _prune(self, hits: Deque[float], now: float) -> None:
        while hits and now - hits[0] >= self.window_seconds:
            hits.popleft()

    def sweep(self, now: float) -> None:
        """Forget clients with no hits left in the window."""
        for client in list(self._hits):
            self._prune(self._hits[client], now)
            if not self._hits[client]:
                del self._hits[client]
        self._last_sweep = now

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path.startswith(self.exempt_prefixes):
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        now = time.monotonic()

        async with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self.sweep(now)
            hits = self._hits.setdefault(client, deque())
            self._prune(hits, now)

            if len(hits) >= self.max_requests:
                logger.warning("Rate limit exceeded", client=client, requests=len(hits))
                return JSONResponse(
                    {"detail": "Rate limit exceeded"},
                    status_code=429,
                    headers={
                        "Retry-After": str(self.window_seconds),
                        "X-RateLimit-Limit": str(self.max_requests),
                        "X-RateLimit-Remaining": "0",
                    },
                )

            hits.append(now)
            remaining = self.max_requests - len(hits)

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response
