"""Inkwell Logging Configuration.

Security events (failed authentication, rate limiting, revocation) are logged
with structured ``extra`` fields so they stay queryable in JSON output. Raw
tokens never reach a log line: pass them through ``redact_token`` first.
"""

import json
import logging
import sys
from typing import Any, Literal

DEV_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Characters of a token that may appear in logs
TOKEN_LOG_PREFIX = 20

# ``extra`` keys copied into structured log entries
CONTEXT_FIELDS = ("event", "code", "user_id", "client_ip", "method", "path", "token")


def redact_token(token: str | None) -> str:
    """Shorten a bearer token to a loggable prefix."""
    if not token:
        return "<none>"
    if len(token) <= TOKEN_LOG_PREFIX:
        return "<redacted>"
    return f"{token[:TOKEN_LOG_PREFIX]}..."


class JSONFormatter(logging.Formatter):
    """One JSON object per line.

    Messages go through json.dumps() so quotes, backslashes and newlines in
    user-controlled values (usernames, paths) cannot break the log line.
    """

    def __init__(self):
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _build_handler(format_type: Literal["structured", "dev"]) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if format_type == "structured":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(DEV_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    level: str = "INFO",
    format_type: Literal["structured", "dev"] = "dev",
) -> None:
    """Install a single stdout handler on the root logger.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        format_type: 'structured' for JSON lines, 'dev' for readable text
    """
    numeric_level = getattr(logging, level.upper())
    logging.root.handlers = [_build_handler(format_type)]
    logging.root.setLevel(numeric_level)

    # Third-party noise
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.DEBUG if numeric_level == logging.DEBUG else logging.WARNING
    )

    get_logger("logging").info(f"Logging configured: level={level}, format={format_type}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``inkwell`` namespace."""
    return logging.getLogger(f"inkwell.{name}")
