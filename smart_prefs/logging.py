from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from enum import Enum


class PrefsLogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


PrefsLogger = Callable[[PrefsLogLevel, str], None]

STDLIB_LEVELS: dict[PrefsLogLevel, int] = {
    PrefsLogLevel.DEBUG: logging.DEBUG,
    PrefsLogLevel.INFO: logging.INFO,
    PrefsLogLevel.WARNING: logging.WARNING,
    PrefsLogLevel.ERROR: logging.ERROR,
}


def default_prefs_logger(level: PrefsLogLevel, message: str) -> None:
    """Console sink printing ``[LEVEL  ] Prefs: message``."""
    print(f"[{level.value.upper():<7}] Prefs: {message}")


class PrefsLog:
    """Send preference messages to a caller-supplied sink or stdlib logging.

    Structured ``extra`` fields only reach stdlib logging; a custom sink gets
    ``(level, message)``.
    """

    def __init__(self, name: str, sink: PrefsLogger | None = None) -> None:
        self.logger = logging.getLogger(name)
        self.sink = sink

    def __call__(self, level: PrefsLogLevel, message: str, **extra: object) -> None:
        if self.sink is not None:
            self.sink(level, message)
            return
        self.logger.log(STDLIB_LEVELS[level], message, extra=extra or None)


class JsonFormatter(logging.Formatter):
    """Very small JSON formatter for structured logs."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - short
        payload = {
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
            "event_type": getattr(record, "event_type", record.getMessage()),
            "key": getattr(record, "key", None),
            "attempt": getattr(record, "attempt", None),
            "max_retries": getattr(record, "max_retries", None),
            "error_category": getattr(record, "error_category", None),
            "latency_ms": getattr(record, "latency_ms", None),
        }
        return json.dumps(payload, default=str)


def configure_logging(level: str | int | None = None) -> None:
    """Configure logging.

    Default format is human friendly, but when ``LOG_FORMAT=json`` is set the
    output becomes structured JSON containing the preference fields.
    """

    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO").upper()

    fmt = os.getenv("LOG_FORMAT", "plain").lower()
    if fmt == "json":
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logging.basicConfig(level=level, handlers=[handler], force=True)
    else:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%H:%M:%S",
            force=True,
        )
