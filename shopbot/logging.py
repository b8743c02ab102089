"""Structured logging helpers."""

from __future__ import annotations

import logging

import structlog

from shopbot.config import LOG_LEVELS
from shopbot.services.log_buffer import LogBuffer, LogBufferProcessor, get_log_buffer


def _resolve_level(level: int | str) -> int:
    if isinstance(level, str):
        return LOG_LEVELS.get(level.lower(), logging.INFO)
    return level


def configure_logging(
    level: int | str = logging.INFO,
    *,
    detailed: bool | None = None,
    buffer: LogBuffer | None = None,
) -> None:
    """Configure structlog JSON output and mirror events into the log buffer.

    Safe to call again at runtime; loggers are not cached so a new level
    takes effect immediately.
    """

    level_value = _resolve_level(level)
    if buffer is None:
        buffer = get_log_buffer()
    if detailed is not None:
        buffer.detailed = detailed

    logging.basicConfig(
        level=level_value,
        format="%(message)s",
        handlers=[logging.StreamHandler()],
        force=True,
    )
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            LogBufferProcessor(buffer),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def set_log_level(level: int | str, *, detailed: bool | None = None) -> None:
    configure_logging(level, detailed=detailed)
    logger.info("logger_configuration_updated", level=level, detailed_logging=detailed)


logger = structlog.get_logger()

__all__ = ["configure_logging", "logger", "set_log_level"]
