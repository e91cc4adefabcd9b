"""
Logging setup for the service.
Configures the root logger once at startup from settings.
"""
import logging
from logging.config import dictConfig

from dm_core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
JSON_FORMAT = '{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}'


def setup_logging(level: str | None = None, fmt: str | None = None) -> None:
    """
    Configure console logging.

    Args:
        level: Log level name, defaults to settings.log_level
        fmt: "json" or "text", defaults to settings.log_format
    """
    level = (level or settings.log_level).upper()
    formatter = "json" if (fmt or settings.log_format).lower() == "json" else "default"

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": LOG_FORMAT},
                "json": {"format": JSON_FORMAT},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": formatter,
                },
            },
            "root": {
                "level": level,
                "handlers": ["console"],
            },
            "loggers": {
                # Socket.IO logs routine packets at high levels
                "socketio": {"level": "WARNING"},
                "engineio": {"level": "WARNING"},
            },
        }
    )
    logging.getLogger(__name__).debug("Logging configured (level=%s, format=%s)", level, formatter)
