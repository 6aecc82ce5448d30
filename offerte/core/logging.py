"""Structured key=value logging for the Offerte Engine."""

import logging
import sys
from typing import Any

# Record attributes promoted to top-level fields, in output order
CONTEXT_FIELDS = ("offerte_nummer", "endpoint")


def _format_value(value: Any) -> str:
    text = str(value)
    if not text or any(c.isspace() or c in '="' for c in text):
        return '"' + text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n") + '"'
    return text


class StructuredFormatter(logging.Formatter):
    """One key=value line per record; values with spaces or quotes are quoted."""

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                fields[name] = value

        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, dict):
            fields.update(extra_data)

        line = " ".join(f"{key}={_format_value(value)}" for key, value in fields.items())
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _resolve_level() -> int:
    """Explicit OFFERTE_LOG_LEVEL wins; otherwise DEBUG in dev, INFO elsewhere."""
    try:
        from offerte.core.config import get_settings

        settings = get_settings()
    except Exception:
        # Settings unavailable (e.g. invalid environment); stay usable
        return logging.INFO

    if settings.OFFERTE_LOG_LEVEL:
        level = logging.getLevelName(settings.OFFERTE_LOG_LEVEL.upper())
        if isinstance(level, int):
            return level
    return logging.DEBUG if settings.OFFERTE_ENV == "dev" else logging.INFO


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger that writes structured lines to stdout.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.setLevel(_resolve_level())

    return logger


def log_with_context(logger: logging.Logger, level: int, msg: str, **kwargs: Any) -> None:
    """
    Log with context fields.

    Keyword arguments named in CONTEXT_FIELDS become top-level fields; the
    rest are appended as extra data.
    """
    extra: dict[str, Any] = {name: kwargs.pop(name) for name in CONTEXT_FIELDS if name in kwargs}
    extra["extra_data"] = kwargs
    logger.log(level, msg, extra=extra)
