"""Structured logging for the habit tracker, built on structlog.

Every module logs dotted event names with key/value context:

    from core import get_logger
    logger = get_logger(__name__)
    logger.info("completion.toggled", habit_id=42, day=record.day, done=True)

Output is JSON lines when LOG_FORMAT=json, colored console text otherwise.
stdlib records (sqlalchemy, aiosqlite) go through the same renderer, and
dates/datetimes in the event are rendered as ISO 8601 strings.
"""

import logging
import os
import sys
from datetime import date, datetime

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars
from structlog.types import EventDict, Processor, WrappedLogger

__all__ = [
    "bind_contextvars",
    "clear_contextvars",
    "configure_logging",
    "get_logger",
]

QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite", "asyncio")


def _iso_dates(
    _logger: WrappedLogger, _method_name: str, event_dict: EventDict
) -> EventDict:
    for key, value in event_dict.items():
        if isinstance(value, (date, datetime)):
            event_dict[key] = value.isoformat()
    return event_dict


def _resolve_level(level: str | int | None) -> int:
    if isinstance(level, int):
        return level
    name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    return logging.getLevelNamesMapping().get(name, logging.INFO)


def configure_logging(
    level: str | int | None = None,
    *,
    json_output: bool | None = None,
) -> None:
    """Route structlog and stdlib logging through one stdout handler.

    Args:
        level: Level name or number; LOG_LEVEL (default INFO) when omitted.
        json_output: Force JSON or console output; LOG_FORMAT when omitted.

    Safe to call more than once: the root handlers are replaced each time.
    """
    if json_output is None:
        json_output = os.environ.get("LOG_FORMAT", "").lower() == "json"

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        _iso_dates,
    ]

    renderer: Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(_resolve_level(level))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Structured logger for ``name`` (usually the caller's __name__)."""
    return structlog.stdlib.get_logger(name)
