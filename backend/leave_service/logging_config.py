from __future__ import annotations

import logging.config
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from leave_service.config import Settings


def setup_logging(settings: Settings) -> None:
    """Configure root logging for the service process."""
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {"format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                },
            },
            "root": {
                "handlers": ["console"],
                "level": "DEBUG" if settings.debug else settings.log_level.upper(),
            },
        }
    )
