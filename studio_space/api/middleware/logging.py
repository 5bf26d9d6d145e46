"""Structured request logging.

Every request gets a request id (taken from an incoming ``X-Request-ID``
header when present) that is bound to its log lines and echoed back in the
response headers.
"""

import logging
import time
import uuid
from collections.abc import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Probe endpoints are hit every few seconds; keep them out of INFO logs
QUIET_PATHS = frozenset({"/api/health/live", "/api/health/ready"})


def _configure_structlog(renderer, timestamp_fmt: str = "iso") -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt=timestamp_fmt),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# JSON lines until setup_logging() says otherwise
_configure_structlog(structlog.processors.JSONRenderer())

logger = structlog.get_logger()


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line when a request arrives and one when it finishes."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        log = logger.bind(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )
        emit = log.debug if request.url.path in QUIET_PATHS else log.info

        emit("request_received", query_params=dict(request.query_params))
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            log.error(
                "request_failed",
                error=str(exc),
                error_type=type(exc).__name__,
                duration_ms=int((time.perf_counter() - started) * 1000),
                exc_info=True,
            )
            raise

        # user_id is set by the auth dependency on authenticated routes
        emit(
            "request_completed",
            status_code=response.status_code,
            duration_ms=int((time.perf_counter() - started) * 1000),
            user_id=getattr(request.state, "user_id", None),
        )
        response.headers["X-Request-ID"] = request_id
        return response


def setup_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: "json" for production, "console" for local development
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(message)s")

    if level > logging.DEBUG:
        for noisy in ("sqlalchemy.engine", "httpx", "PIL"):
            logging.getLogger(noisy).setLevel(logging.WARNING)

    if log_format == "console":
        _configure_structlog(structlog.dev.ConsoleRenderer(), "%Y-%m-%d %H:%M:%S")
