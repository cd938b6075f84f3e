"""Structured logging configuration with structlog.

Events are logged by name with keyword context
(``logger.info("account_created", account_id=...)``); the request id bound by
``RequestIdMiddleware`` is merged into every event of that request.
"""

import logging

import structlog

from sportsclub.config import Settings

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def _renderer(settings: Settings) -> structlog.types.Processor:
    if settings.log_format == "json" and not settings.debug:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(settings: Settings) -> None:
    """Configure structlog for JSON (production) or console (debug) output."""
    structlog.configure(
        processors=[*_SHARED_PROCESSORS, _renderer(settings)],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(message)s")
    # uvicorn's access lines duplicate the request-scoped events
    logging.getLogger("uvicorn.access").setLevel(max(level, logging.WARNING))
