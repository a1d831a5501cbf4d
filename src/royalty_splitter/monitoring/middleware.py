"""
Flask middleware for request logging and metrics.

Provides:
- Request ID tracking (X-Request-ID)
- Request/response logging with timing
- HTTP request counters and latency histograms
"""

import time
import uuid

from flask import Flask, Response, g, request

from .logging import clear_request_context, get_logger, set_request_context
from .metrics import metrics

logger = get_logger("royalty_splitter.request")


def setup_request_logging(app: Flask) -> None:
    """
    Set up request logging middleware for a Flask app.

    Args:
        app: Flask application instance
    """

    @app.before_request
    def before_request():
        g.request_id = request.headers.get("X-Request-ID", str(uuid.uuid4())[:8])
        g.start_time = time.perf_counter()
        set_request_context(
            request_id=g.request_id,
            method=request.method,
            path=request.path,
        )

    @app.after_request
    def after_request(response: Response) -> Response:
        _record_request_metrics(response.status_code)
        if hasattr(g, "request_id"):
            response.headers["X-Request-ID"] = g.request_id
        return response

    @app.teardown_request
    def teardown_request(exception=None):
        clear_request_context()
        if exception:
            logger.error(
                "Request failed with exception",
                exc_info=exception,
                extra={
                    "request_id": getattr(g, "request_id", "unknown"),
                    "path": request.path,
                    "method": request.method,
                },
            )


def _record_request_metrics(status_code: int) -> None:
    """Record metrics for a completed request."""
    duration_ms = 0.0
    if hasattr(g, "start_time"):
        duration_ms = (time.perf_counter() - g.start_time) * 1000

    path = _normalize_path(request.path)
    metrics.increment(
        "http_requests_total",
        labels={"method": request.method, "path": path, "status": str(status_code)},
    )
    metrics.timing("http_request_duration_ms", duration_ms, labels={"method": request.method, "path": path})

    if status_code >= 500:
        log = logger.error
    elif status_code >= 400:
        log = logger.warning
    else:
        log = logger.info
    log(
        f"{request.method} {request.path} -> {status_code}",
        extra={"status_code": status_code, "duration_ms": round(duration_ms, 2)},
    )


def _normalize_path(path: str) -> str:
    """Replace numeric work ids with a placeholder to bound label cardinality."""
    parts = path.strip("/").split("/")
    normalized = [":id" if part.isdigit() else part for part in parts]
    return "/" + "/".join(normalized) if normalized else "/"
