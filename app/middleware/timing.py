"""
Request timing middleware.

Stamps every response with X-Request-ID (echoing the caller's header when
present) and X-Request-Duration-Ms, and logs API requests: slow ones as
warnings, 5xx as errors, the rest at debug.
"""

import logging
import time
import uuid

from flask import Flask, g, request

logger = logging.getLogger(__name__)

# Probes hit these every few seconds; they are timed but never logged.
_QUIET_PREFIXES = ("/api/v1/health",)

DEFAULT_SLOW_REQUEST_MS = 1000


def _level_for(status: int, duration_ms: float, slow_ms: float) -> tuple[int, str]:
    if duration_ms > slow_ms:
        return logging.WARNING, "Slow request"
    if status >= 500:
        return logging.ERROR, "Server error"
    return logging.DEBUG, "Request"


def init_request_timing(app: Flask):
    """Register before/after hooks for request timing."""
    slow_ms = app.config.get("SLOW_REQUEST_THRESHOLD_MS", DEFAULT_SLOW_REQUEST_MS)

    @app.before_request
    def _start_timer():
        g.request_start = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]

    @app.after_request
    def _stamp_and_log(response):
        start = g.pop("request_start", None)
        if start is None:
            return response

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = g.request_id
        response.headers["X-Request-Duration-Ms"] = f"{duration_ms:.1f}"

        if request.path.startswith(_QUIET_PREFIXES):
            return response

        level, label = _level_for(response.status_code, duration_ms, slow_ms)
        logger.log(
            level, "%s: %s %s %d (%.0fms)",
            label, request.method, request.path, response.status_code, duration_ms,
            extra={
                "method": request.method,
                "path": request.path,
                "status": response.status_code,
                "duration_ms": duration_ms,
                "remote_addr": request.remote_addr,
                "request_id": g.request_id,
            },
        )
        return response
