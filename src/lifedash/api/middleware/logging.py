"""Request logging middleware with secret filtering.

This module provides structured logging for all API requests with:
- Unique request IDs for tracing
- Request duration tracking
- Caller context (the x-user-id header)
- Secret filtering so API keys and provider tokens never reach the logs
"""

import json
import logging
import re
import sys
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


# Secret patterns to filter from logs
SECRET_PATTERNS = [
    # Authorization: Bearer <token>
    (re.compile(r"(?i)\bbearer\s+[A-Za-z0-9\-._~+/]+=*"), "Bearer [TOKEN]"),
    # x-api-key: <key> / api_key=<key> / "api_key": "<key>"
    (
        re.compile(r"(?i)((?:x[-_])?api[-_]?key[\"']?\s*[:=]\s*[\"']?)[^\s\"'&,}]+"),
        r"\1[KEY]",
    ),
    # access_token=..., refresh_token=..., token=... in query strings or bodies
    (
        re.compile(r"(?i)\b((?:access_|refresh_)?token[\"']?\s*[:=]\s*[\"']?)[^\s\"'&,}]+"),
        r"\1[TOKEN]",
    ),
]


def filter_secrets(text: str) -> str:
    """Remove credentials from text using regex patterns.

    Args:
        text: Input text that may contain secrets

    Returns:
        Text with secrets replaced by placeholders
    """
    if not text:
        return text

    filtered = text
    for pattern, replacement in SECRET_PATTERNS:
        filtered = pattern.sub(replacement, filtered)

    return filtered


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all HTTP requests with secret filtering."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and log details.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware or route handler

        Returns:
            HTTP response
        """
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.time()

        user_id = request.headers.get("x-user-id")
        path = filter_secrets(str(request.url.path))

        logger.info(
            "Request started",
            extra={
                "request_id": request_id,
                "user_id": user_id,
                "method": request.method,
                "path": path,
                "client_ip": request.client.host if request.client else None,
            },
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = int((time.time() - start_time) * 1000)
            logger.error(
                "Request failed",
                extra={
                    "request_id": request_id,
                    "user_id": user_id,
                    "method": request.method,
                    "path": path,
                    "duration_ms": duration_ms,
                    "error": filter_secrets(str(exc)),
                },
            )
            raise

        duration_ms = int((time.time() - start_time) * 1000)
        response.headers["X-Request-ID"] = request_id

        logger.info(
            "Request completed",
            extra={
                "request_id": request_id,
                "user_id": user_id,
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        return response


# LogRecord attributes that are not caller-supplied ``extra`` fields.
_RESERVED_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JSONLogFormatter(logging.Formatter):
    """Format log records as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": filter_secrets(record.getMessage()),
        }

        for key, value in vars(record).items():
            if key in _RESERVED_ATTRS or key.startswith("_") or value is None:
                continue
            log_data[key] = filter_secrets(value) if isinstance(value, str) else value

        if record.exc_info:
            log_data["exception"] = filter_secrets(self.formatException(record.exc_info))

        return json.dumps(log_data, default=str)


def configure_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Install a single stdout handler on the root logger."""
    handler = logging.StreamHandler(sys.stdout)
    if json_format:
        handler.setFormatter(JSONLogFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level.upper())
