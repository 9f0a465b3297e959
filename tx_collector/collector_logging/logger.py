"""
Structured logging for the collector.

Every record carries event_type, level, an ISO UTC timestamp and the module
name bound as logger. LOG_FORMAT=json (default) renders one JSON object per
line; anything else uses the structlog console renderer.

    logger = get_logger(__name__)
    logger.info("tx_fetch_done", chain_id="columbus-5", fetched=12, failed=1)

No tx_collector imports here: every other module imports this one.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog


def _level_from_env(default: str = "INFO") -> int:
    level = logging.getLevelName(os.getenv("LOG_LEVEL", default).strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _renderer(log_format: str) -> Any:
    if log_format == "json":
        return structlog.processors.JSONRenderer(sort_keys=False)
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def configure_structlog(level: int | None = None, log_format: str | None = None) -> None:
    """(Re)configure structlog; defaults come from LOG_LEVEL and LOG_FORMAT."""
    if level is None:
        level = _level_from_env()
    if log_format is None:
        log_format = os.getenv("LOG_FORMAT", "json")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.EventRenamer("event_type"),
            _renderer(log_format.strip().lower()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a logger with the module name bound as logger."""
    return structlog.get_logger(name).bind(logger=name)


def bind_block(chain_id: str, height: int | None) -> structlog.BoundLogger:
    """Return a logger with chain_id and height bound to all subsequent log calls."""
    return get_logger("tx_collector").bind(chain_id=chain_id, height=height)
