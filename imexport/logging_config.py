"""
Structured logging for the API and worker processes.

Modules log through ``structlog.get_logger(__name__)`` with an event name and
key/value context. Events are handed to the standard library logger tree and
rendered there, as JSON by default, so third-party loggers (uvicorn, celery)
share the same handler and format.
"""

import logging
import logging.config
import sys

import structlog
from pythonjsonlogger import jsonlogger

JSON_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Configure structlog and the stdlib root logger.

    Safe to call more than once: ``dictConfig`` replaces the root handlers
    instead of stacking new ones.
    """
    level = level.upper()
    if fmt == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        # event becomes the record message, context becomes json fields
        renderer = structlog.stdlib.render_to_log_kwargs

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": jsonlogger.JsonFormatter, "format": JSON_FORMAT},
            "console": {"format": "%(message)s"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "console" if fmt == "console" else "json",
                "stream": sys.stdout,
            },
        },
        "root": {"handlers": ["console"], "level": level},
    })


def get_logger(name: str = None):
    return structlog.get_logger(name or __name__)
