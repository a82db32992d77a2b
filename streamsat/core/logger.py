"""
Module for centralized, configurable logging across streamsat packages.

Everything is driven by environment variables so the CLI and library callers
share one setup:

* ``STREAMSAT_LOG_LEVEL``: level name, ``INFO`` by default
* ``STREAMSAT_LOG_FMT``: ``json`` for structured records, otherwise a
  ``logging`` format string
* ``STREAMSAT_LOG_FILE``: optional path that receives a copy of every record
"""

import logging
import os
import json
from datetime import datetime, timezone

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"

# Chatty third-party loggers and the level they are capped at
QUIET_LOGGERS = {
    "googleapiclient.discovery_cache": logging.ERROR,
    "google.auth.transport.requests": logging.WARNING,
    "urllib3.connectionpool": logging.WARNING,
    "fiona": logging.WARNING,
    "pyogrio": logging.WARNING,
}


class JSONFormatter(logging.Formatter):
    """
    Formatter that outputs log records in JSON format with keys:
    timestamp (in ISO8601 with UTC timezone), level, name, message.
    Tracebacks, when present, go under ``exc_info``.
    """

    def format(self, record):
        record_dict = {
            "timestamp": datetime.fromtimestamp(
                record.created, timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            record_dict["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(record_dict)


def _resolve_level(level: int | None) -> int:
    if level is not None:
        return level
    env_level = os.getenv("STREAMSAT_LOG_LEVEL", "INFO").upper()
    # unknown names fall back to INFO rather than failing at import time
    return getattr(logging, env_level, logging.INFO)


def _make_formatter(fmt_mode: str, datefmt: str) -> logging.Formatter:
    if fmt_mode.lower() == "json":
        return JSONFormatter(datefmt=datefmt)
    return logging.Formatter(fmt_mode or DEFAULT_FORMAT, datefmt=datefmt)


class Logger:
    """
    Central logging setup for all modules.
    """

    _configured = False

    @staticmethod
    def setup(
        level: int | None = None,
        fmt: str | None = None,
        datefmt: str = "%Y-%m-%d %H:%M:%S",
        log_file: str | None = None,
    ) -> None:
        """
        Configure the root logger once.

        Records go to stderr and, when *log_file* or ``STREAMSAT_LOG_FILE`` is
        set, to that file as well, both with the same formatter.
        """
        if Logger._configured:
            return
        effective_level = _resolve_level(level)
        fmt_mode = fmt if fmt is not None else os.getenv("STREAMSAT_LOG_FMT", "")
        formatter = _make_formatter(fmt_mode, datefmt)

        handlers: list[logging.Handler] = [logging.StreamHandler()]
        log_file = log_file or os.getenv("STREAMSAT_LOG_FILE")
        if log_file:
            handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

        root = logging.getLogger()
        # replace, never stack: setup may follow a reset() in tests
        root.handlers.clear()
        for handler in handlers:
            handler.setFormatter(formatter)
            root.addHandler(handler)
        root.setLevel(effective_level)

        for name, cap in QUIET_LOGGERS.items():
            logging.getLogger(name).setLevel(max(cap, effective_level))
        Logger._configured = True

    @staticmethod
    def get_logger(
        name: str = "streamsat", *, level: int | None = None, fmt: str | None = None
    ) -> logging.Logger:
        """
        Get a logger with the specified name.

        Parameters:
            name: The name of the logger.
            level: Optional logging level to set up.
            fmt: Optional format string for log messages.

        Returns:
            logging.Logger: The configured logger instance.
        """
        Logger.setup(level=level, fmt=fmt)
        return logging.getLogger(name)

    @staticmethod
    def reset() -> None:
        """Close root handlers and allow :meth:`setup` to run again."""
        root = logging.getLogger()
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        Logger._configured = False
