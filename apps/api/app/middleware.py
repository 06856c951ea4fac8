"""
Middleware
==========

Request logging, response timing and CORS.

Usage:
    from app.middleware import setup_middleware
    setup_middleware(app)
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import settings

logger = logging.getLogger("pitchside.requests")


# =============================================================================
# REQUEST LOGGING
# =============================================================================

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every request with timing and metadata, and tags the response
    with `X-Request-ID` and `X-Response-Time`.

    Credentials (authorization header, API key, cookies) are never logged.
    """

    # Paths to exclude from logging (health checks, etc.)
    EXCLUDE_PATHS = {"/health", "/ready", "/live", "/favicon.ico"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        start_time = time.perf_counter()

        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            status_code = response.status_code if response is not None else 500

            if response is not None:
                response.headers["X-Request-ID"] = request_id
                response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

            if request.url.path not in self.EXCLUDE_PATHS:
                if status_code >= 500:
                    level = logging.ERROR
                elif status_code >= 400:
                    level = logging.WARNING
                else:
                    level = logging.INFO
                logger.log(
                    level,
                    "%s %s %d %.2fms id=%s ip=%s",
                    request.method,
                    request.url.path,
                    status_code,
                    duration_ms,
                    request_id,
                    self._get_client_ip(request),
                )

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP, handling proxies."""
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            # First IP in the list is the original client
            return forwarded.split(",")[0].strip()

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host

        return "unknown"


# =============================================================================
# SETUP FUNCTION
# =============================================================================

def setup_middleware(app: FastAPI) -> None:
    """Configure CORS and request logging on the application."""
    cors_origins = settings.cors_origins_list

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Response-Time"],
    )

    # Added last so it is outermost and times everything
    app.add_middleware(RequestLoggingMiddleware)

    logger.debug("Middleware configured: cors_origins=%d origins", len(cors_origins))
