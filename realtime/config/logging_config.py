"""
Configure logging for the application.

This module provides a consistent logging configuration across the entire
application, ensuring log messages are formatted correctly and directed
to the appropriate outputs (console, file, etc.).

It also provides FieldLogger, a small adapter that attaches a constant set
of key/value fields to every record it emits, so that e.g. every line logged
by an example program carries ``package=realtime example=openai``.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from realtime.config.constants import LOGGER_NAME

# Log levels
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Log file configuration
LOG_DIR = Path("logs")
LOG_FILE = LOG_DIR / "realtime.log"
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5


def configure_logging(level: Optional[str] = None):
    """
    Configure the application logger with console and file handlers.

    Args:
        level: Optional level name overriding the LOG_LEVEL environment variable

    Returns:
        logging.Logger: The configured logger instance
    """
    # Create logger
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, (level or LOG_LEVEL).upper()))

    # Remove existing handlers if any
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Create file handler if log directory exists or can be created
    try:
        LOG_DIR.mkdir(exist_ok=True)
        file_handler = RotatingFileHandler(
            LOG_FILE,
            maxBytes=MAX_LOG_SIZE,
            backupCount=BACKUP_COUNT
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    except OSError as e:
        logger.warning(f"Could not set up file logging: {e}")

    # Prevent log propagation to root logger
    logger.propagate = False

    logger.info("Logging configured")
    return logger


def render_fields(fields: Dict[str, Any]) -> str:
    """Render fields as space separated key=value pairs."""
    return " ".join(f"{key}={value}" for key, value in fields.items())


class FieldLogger(logging.LoggerAdapter):
    """
    Logger adapter that appends a constant set of fields to every message.

    Per-call fields can be passed with the ``fields`` keyword and are merged
    after the constant ones, so they win on key collision. The merged fields
    are also stored on the record as ``record.fields`` for handlers that want
    them unformatted.

    Example:
        logger = FieldLogger(logging.getLogger("realtime"), package="realtime")
        logger.info("Data channel opened", fields={"label": "oai-events"})
        # ... - INFO - Data channel opened package=realtime label=oai-events
    """

    def __init__(self, logger: logging.Logger, **fields: Any):
        super().__init__(logger, fields)

    @property
    def fields(self) -> Dict[str, Any]:
        return dict(self.extra)

    def process(self, msg, kwargs):
        fields = dict(self.extra)
        fields.update(kwargs.pop("fields", None) or {})
        extra = dict(kwargs.get("extra") or {})
        extra["fields"] = fields
        kwargs["extra"] = extra
        if fields:
            msg = f"{msg} {render_fields(fields)}"
        return msg, kwargs

    def with_fields(self, **fields: Any) -> "FieldLogger":
        """Return a new logger carrying this logger's fields plus ``fields``."""
        merged = dict(self.extra)
        merged.update(fields)
        return FieldLogger(self.logger, **merged)

    def trace(self, msg, *args, **kwargs):
        self.log(logging.DEBUG, msg, *args, **kwargs)

    def error(self, msg="", *args, err: Optional[BaseException] = None, **kwargs):
        """
        Log at ERROR level, optionally attaching an exception as a field.

        With ``err`` set, an ``error=<err>`` field is added after the other
        fields; an empty message is replaced by ``str(err)``.
        """
        if err is not None:
            if not msg:
                msg = str(err)
            call_fields = dict(kwargs.pop("fields", None) or {})
            call_fields["error"] = err
            kwargs["fields"] = call_fields
        self.log(logging.ERROR, msg, *args, **kwargs)

    def panic(self, msg, *args, **kwargs):
        """Log at CRITICAL level, then raise RuntimeError."""
        self.log(logging.CRITICAL, msg, *args, **kwargs)
        raise RuntimeError(msg % args if args else msg)

    def fatal(self, msg, *args, **kwargs):
        """Log at CRITICAL level, then exit the process with status 1."""
        self.log(logging.CRITICAL, msg, *args, **kwargs)
        sys.exit(1)


def new_logger(level: Optional[str] = None, **fields: Any) -> FieldLogger:
    """
    Configure the application logger and wrap it with constant fields.

    Args:
        level: Optional level name overriding LOG_LEVEL
        **fields: Fields attached to every record

    Returns:
        FieldLogger: Adapter over the configured application logger
    """
    return FieldLogger(configure_logging(level), **fields)
