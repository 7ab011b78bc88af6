"""Centralized logging configuration for the Feedback Hub backend.

Output is one JSON object per line by default, so log shippers can index
fields such as ``feedback_id`` or ``status_code`` directly. ``LOG_FORMAT=simple``
switches to a single human-readable line for local development.

Usage:
    # In main.py (once, at startup):
    from src.lib.logging_config import configure_logging
    configure_logging()

    # In any module:
    logger = logging.getLogger(__name__)
    logger.info("Created feedback", extra={"feedback_id": "BUG-K3ZQ7XYA"})

Every record carries the id of the HTTP request that produced it. The id is
taken from the caller's ``X-Request-ID`` header when present and echoed back
on the response.
"""

import json
import logging
import os
import sys
import time
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from src.config import get_log_level


request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

REQUEST_ID_HEADER = "X-Request-ID"

ACCESS_LOGGER = "feedback_hub.access"

# Attributes every LogRecord has; anything else arrived through ``extra=``
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "request_id"}

_NOISY_LOGGERS = {
    "httpcore": logging.WARNING,
    "httpx": logging.WARNING,
    "botocore": logging.WARNING,
    "boto3": logging.WARNING,
    "s3transfer": logging.WARNING,
    "urllib3": logging.WARNING,
    "uvicorn.access": logging.WARNING,
}


def _timestamp(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


def _format_exception(record: logging.LogRecord) -> Optional[str]:
    if record.exc_info and record.exc_info[1] is not None:
        return "".join(traceback.format_exception(*record.exc_info))
    return None


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


class ContextFilter(logging.Filter):
    """Stamp the current request id onto records that lack one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_var.get()  # type: ignore[attr-defined]
        return True


class JsonFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": _timestamp(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        for key, value in _extra_fields(record).items():
            entry.setdefault(key, value)

        exc_text = _format_exception(record)
        if exc_text:
            entry["exc_info"] = exc_text

        return json.dumps(entry, default=str)


class SimpleFormatter(logging.Formatter):
    """Human-readable format for local development."""

    def format(self, record: logging.LogRecord) -> str:
        line = "{} {:<8} {} - {}".format(
            _timestamp(record).strftime("%Y-%m-%d %H:%M:%S"),
            record.levelname,
            record.name,
            record.getMessage(),
        )

        request_id = getattr(record, "request_id", None)
        if request_id:
            line += f" [request_id={request_id}]"

        exc_text = _format_exception(record)
        if exc_text:
            line += "\n" + exc_text
        return line


def configure_logging(log_format: Optional[str] = None) -> None:
    """Configure root logging for the application.

    Args:
        log_format: ``json`` or ``simple``; defaults to LOG_FORMAT, then json
    """
    log_format = (log_format or os.getenv("LOG_FORMAT") or "json").lower()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(SimpleFormatter() if log_format == "simple" else JsonFormatter())
    handler.addFilter(ContextFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, get_log_level(), logging.INFO))
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name, level in _NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def create_request_context_middleware(app) -> None:
    """Register request-id and access-log middleware on a FastAPI app.

    Replaces the uvicorn access log with one record per request that carries
    the request id, status code and duration as fields.
    """
    from starlette.middleware.base import BaseHTTPMiddleware
    from starlette.requests import Request
    from starlette.responses import Response

    access_logger = logging.getLogger(ACCESS_LOGGER)

    class RequestContextMiddleware(BaseHTTPMiddleware):
        async def dispatch(self, request: Request, call_next) -> Response:
            req_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
            token = request_id_var.set(req_id)
            started = time.perf_counter()
            try:
                response = await call_next(request)
                access_logger.info(
                    '%s %s -> %d', request.method, request.url.path, response.status_code,
                    extra={
                        "method": request.method,
                        "path": request.url.path,
                        "status_code": response.status_code,
                        "duration_ms": round((time.perf_counter() - started) * 1000, 1),
                    },
                )
            finally:
                request_id_var.reset(token)

            response.headers[REQUEST_ID_HEADER] = req_id
            return response

    app.add_middleware(RequestContextMiddleware)
