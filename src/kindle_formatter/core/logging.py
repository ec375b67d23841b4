"""Logging configuration helpers."""

from __future__ import annotations

import logging
import logging.config
from typing import Any

from .config import LoggingSettings


def _structured_formatter() -> dict[str, Any]:
    """Return a dictConfig fragment for key=value log lines."""
    return {
        "format": "ts={asctime} level={levelname} logger={name} msg={message}",
        "style": "{",
    }


def _plain_formatter() -> dict[str, Any]:
    """Return a dictConfig fragment for human readable logs."""
    return {
        "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
    }


def configure_logging(settings: LoggingSettings) -> None:
    """Configure application logging according to provided settings."""
    formatter = _structured_formatter() if settings.structured else _plain_formatter()

    handlers: dict[str, dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "level": settings.level,
        },
    }
    if settings.log_file is not None:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "formatter": "default",
            "level": settings.level,
            "filename": str(settings.log_file),
            "encoding": "utf-8",
        }

    dict_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": formatter,
        },
        "handlers": handlers,
        "root": {
            "handlers": list(handlers),
            "level": settings.level,
        },
        "loggers": {
            # httpx logs every request at INFO
            "httpx": {"level": "WARNING"},
        },
    }

    logging.config.dictConfig(dict_config)


__all__ = ["configure_logging"]
