"""
VocalSaaS Backend: Request Logging Middleware
==============================================

What:  One access-log line per request: method, path, status, duration,
       request id and client IP.
Who:   Applied to every request after RequestIDMiddleware.

Never logged: request bodies (scripts, journal text), uploaded audio, and the
Authorization header.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from vocalsaas.middleware.request_id import request_id_var

logger = logging.getLogger("vocalsaas.access")

# Health probes run every few seconds and would drown the log
QUIET_PATHS = {"/api/health"}


def level_for_status(status: int) -> int:
    """5xx → ERROR, 4xx → WARNING, everything else → INFO."""
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Typical durations:
        GET /api/health:          1-5ms
        GET /api/journal/entries: 10-50ms (two queries)
        POST /api/voice/generate: seconds (vendor TTS dominates)
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # Reached only when no exception handler produced a response
            self._log(request, 500, started)
            raise

        self._log(request, response.status_code, started)
        return response

    @staticmethod
    def _log(request: Request, status: int, started: float) -> None:
        elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
        client = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")

        logger.log(
            level_for_status(status),
            "%s %s → %d in %sms (rid=%s, client=%s)",
            request.method,
            request.url.path,
            status,
            elapsed_ms,
            rid,
            client,
            extra={
                "request_id": rid,
                "http_method": request.method,
                "http_path": request.url.path,
                "http_status": status,
                "elapsed_ms": elapsed_ms,
                "client_ip": client,
            },
        )
