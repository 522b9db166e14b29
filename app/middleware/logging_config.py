"""
Structured logging configuration.

- Development: human-readable colored lines, entity ids appended
- Production: one JSON object per line (log aggregator compatible)
- LOG_LEVEL picks the level, LOG_FORMAT ("json" / "readable") overrides
  the per-environment format

Every record passes through RequestContextFilter, so service-layer log
calls made while handling a request carry its request_id without the
caller having to pass it.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

from flask import g, has_app_context

# Record attributes copied into structured output when present.
CONTEXT_FIELDS = (
    "request_id",
    "method",
    "path",
    "status",
    "duration_ms",
    "remote_addr",
    "assessment_id",
    "work_package_id",
)

# Short tags shown by the readable formatter, in display order.
_READABLE_TAGS = (
    ("request_id", "req"),
    ("assessment_id", "assessment"),
    ("work_package_id", "wp"),
)


class RequestContextFilter(logging.Filter):
    """Attach the current request id (set by the timing middleware) to records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None and has_app_context():
            record.request_id = g.get("request_id")
        return True


class JSONFormatter(logging.Formatter):
    """JSON log formatter for production / log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Colored single-line formatter for local development."""

    COLORS = {
        "DEBUG": "\033[36m",      # cyan
        "INFO": "\033[32m",       # green
        "WARNING": "\033[33m",    # yellow
        "ERROR": "\033[31m",      # red
        "CRITICAL": "\033[35m",   # magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{color}{ts} {record.levelname:<8}{self.RESET} {record.name}: {record.getMessage()}"

        tags = [
            f"{label}={getattr(record, attr)}"
            for attr, label in _READABLE_TAGS
            if getattr(record, attr, None)
        ]
        duration = getattr(record, "duration_ms", None)
        if duration is not None:
            tags.append(f"{duration:.0f}ms")
        if tags:
            line += f" [{' '.join(tags)}]"

        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _pick_formatter(is_prod: bool) -> logging.Formatter:
    fmt = os.getenv("LOG_FORMAT", "").lower()
    if fmt == "json" or (not fmt and is_prod):
        return JSONFormatter()
    return ReadableFormatter()


def configure_logging(app):
    """
    Install a single stderr handler on the root logger.

    Level: LOG_LEVEL env (default INFO in production, DEBUG otherwise).
    Format: LOG_FORMAT env, else JSON in production and readable elsewhere.
    """
    is_testing = app.config.get("TESTING", False)
    is_prod = not app.config.get("DEBUG", False) and not is_testing

    level_name = os.getenv("LOG_LEVEL", "INFO" if is_prod else "DEBUG").upper()
    level = getattr(logging, level_name, logging.INFO)
    formatter = _pick_formatter(is_prod)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(level)
    handler.addFilter(RequestContextFilter())

    root = logging.getLogger()
    # create_app runs once per test session; replace rather than stack handlers
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for noisy in ("werkzeug", "sqlalchemy.engine", "flask_limiter"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    app.logger.setLevel(level)

    if not is_testing:
        app.logger.info(
            "Logging configured: level=%s format=%s",
            level_name, type(formatter).__name__,
        )
