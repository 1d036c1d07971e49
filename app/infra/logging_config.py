"""Process-wide logging setup."""

from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Optional

from app.config import get_settings

DEFAULT_LOGGER_NAME = "sales_ledger"


class LoggingConfig:
    """
    Configure application-wide logging once during startup.
    Safe to instantiate repeatedly; later instances leave handlers alone.
    """

    _configured = False

    def __init__(self, level: Optional[str] = None) -> None:
        if LoggingConfig._configured:
            return
        level = (level or get_settings().log_level or "INFO").upper()
        dictConfig(
            {
                "version": 1,
                "disable_existing_loggers": False,
                "formatters": {
                    "default": {
                        "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                    }
                },
                "handlers": {
                    "console": {
                        "class": "logging.StreamHandler",
                        "formatter": "default",
                    }
                },
                "root": {"handlers": ["console"], "level": level},
                "loggers": {
                    # python-telegram-bot and httpx are chatty at INFO.
                    "httpx": {"level": "WARNING"},
                    "telegram": {"level": "WARNING"},
                },
            }
        )
        LoggingConfig._configured = True


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    return logging.getLogger(name)
