"""Logging setup for the stream registry.

Modules log through ``logging.getLogger(__name__)`` and pass structured
context via ``extra={...}``. configure_logging() installs a formatter that
renders that context as trailing key=value pairs.
"""

import logging
import logging.config
from typing import Any

from stream_registry.settings import Settings

# Attributes every LogRecord carries; anything else came in through extra=.
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class KeyValueFormatter(logging.Formatter):
    """Formatter that appends ``extra`` context as sorted key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        context = {k: v for k, v in vars(record).items() if k not in _RESERVED_ATTRS}
        if not context:
            return base
        pairs = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        return f"{base} {pairs}"


def logging_config(settings: Settings) -> dict[str, Any]:
    """Build the dictConfig mapping for the given settings.

    Args:
        settings: Service settings (uses log_level and service_name).

    Returns:
        A logging.config.dictConfig-compatible dict.
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "keyvalue": {
                "()": KeyValueFormatter,
                "format": f"%(asctime)s %(levelname)s [{settings.service_name}] %(name)s: %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "keyvalue",
            },
        },
        "loggers": {
            "stream_registry": {
                "handlers": ["console"],
                "level": settings.log_level.upper(),
                "propagate": False,
            },
        },
    }


def configure_logging(settings: Settings) -> None:
    """Install the key=value console handler on the stream_registry logger."""
    logging.config.dictConfig(logging_config(settings))
