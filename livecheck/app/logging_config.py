"""Logging bootstrap for the controller service."""
from __future__ import annotations

from logging.config import dictConfig


def configure_logging(level: str = "INFO") -> None:
    """Apply logging defaults for the liveness controller."""

    level = level.upper()
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": level,
                }
            },
            "root": {"level": level, "handlers": ["console"]},
            "loggers": {
                "livecheck": {"level": level},
            },
        }
    )


__all__ = ["configure_logging"]
