"""
Structured logging configuration for FlowState.

Configures structlog to work alongside stdlib logging so that both
`logging.getLogger()` and `structlog.get_logger()` produce consistent,
structured JSON output in production and human-readable output in dev.

Usage:
    from flowstate.lib.logging import setup_logging

    setup_logging()  # Call once at application startup
"""

import logging
import sys

import structlog

from flowstate.config.settings import Settings


def setup_logging(settings: Settings | None = None) -> None:
    """
    Configure structlog and stdlib logging for the application.

    In development (FLOWSTATE_DEV_MODE=1): human-readable colored console output.
    In production: JSON-formatted structured logs.

    Args:
        settings: Settings to read dev mode and log level from (env if None)
    """
    settings = settings or Settings.from_env()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.dev_mode:
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # stdlib records (SQLAlchemy, asyncio) go through the same renderer
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, settings.log_level, logging.INFO))

    for noisy_logger in ("sqlalchemy.engine", "aiosqlite", "asyncio"):
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)


def bind_user_context(user_id: str | None) -> None:
    """Attach (or clear) the current user id on every subsequent log line."""
    structlog.contextvars.unbind_contextvars("user_id")
    if user_id is not None:
        structlog.contextvars.bind_contextvars(user_id=user_id)
