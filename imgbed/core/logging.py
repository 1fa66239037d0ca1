from __future__ import annotations

import logging
import logging.config

from imgbed.core.config import settings


_configured = False


def configure_logging(level: str | None = None) -> None:
    global _configured
    if _configured:
        return

    resolved = str(level or settings.log_level or "INFO").upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {"level": resolved, "handlers": ["console"]},
            "loggers": {
                # boto and urllib3 are noisy at INFO.
                "botocore": {"level": "WARNING"},
                "urllib3": {"level": "WARNING"},
            },
        }
    )
    _configured = True
