"""
Structured logging configuration using structlog.

Pipeline code logs through structlog; storage, sources and the HTTP
fetching layer use plain stdlib loggers. Both end up in the same handler
and share one renderer: JSON in production, colored console otherwise.
Context bound with log_context (request_id, cycle_id) is attached to
every line emitted inside it, stdlib records included.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import Processor

from rss_tracker.config.settings import get_settings

# Third-party loggers that are chatty at INFO
_QUIET_LOGGERS = (
    "httpx",
    "httpcore",
    "asyncio",
    "trafilatura",
    "transformers",
    "uvicorn.access",
)


def setup_logging(level: str | None = None) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Overrides settings.log_level (the CLI passes DEBUG for --debug)

    Usage:
        setup_logging()
        logger = structlog.get_logger(__name__)
        logger.info("Article analyzed", article_id="...", sentiment="bullish")
    """
    settings = get_settings()
    level = (level or settings.log_level).upper()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_production:
        renderer: Processor = structlog.processors.JSONRenderer()
        final_processors: list[Processor] = [structlog.processors.format_exc_info, renderer]
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
        final_processors = [renderer]

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta]
        + final_processors,
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level, logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """
    Bind key-values for the duration of a block.

    Previously bound keys with the same names are restored on exit, so
    nested contexts (a cycle inside a request) do not clobber each other.
    """
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield
