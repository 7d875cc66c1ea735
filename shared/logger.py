"""Structured logging for the status tracker.

Configures structlog on top of the standard library ``logging`` module so
every component logs key/value events with a bound component name::

    from shared.logger import get_logger

    log = get_logger(component="profile_storage")
    log.info("profile_saved", status="EMPLOYED")

Identity fields on the user profile (passport number, SEVIS ID, email) are
masked before rendering.
"""

from __future__ import annotations

import logging
import os
import sys

import structlog
from structlog.types import EventDict, WrappedLogger

MASKED = "***MASKED***"

SENSITIVE_FIELDS = frozenset({"passport_number", "sevis_id", "email"})

_configured = False


def mask_identifiers(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Processor that replaces identity fields with a mask.

    Nested dicts one level deep (e.g. ``profile={...}``) are masked too.
    """
    for key in list(event_dict.keys()):
        value = event_dict[key]
        if key in SENSITIVE_FIELDS and value:
            event_dict[key] = MASKED
        elif isinstance(value, dict):
            event_dict[key] = {
                k: (MASKED if k in SENSITIVE_FIELDS and v else v)
                for k, v in value.items()
            }
    return event_dict


def configure_logging(log_level: str | None = None, json_output: bool = False) -> None:
    """Configure structlog and the stdlib root handler.

    Args:
        log_level: Level name; defaults to ``TRACKER_LOG_LEVEL`` or INFO.
        json_output: Render JSON lines instead of the console format.
    """
    global _configured

    level_name = (log_level or os.environ.get("TRACKER_LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        level=level,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            mask_identifiers,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(component: str | None = None):
    """Return a structlog logger, configuring logging on first use."""
    if not _configured:
        configure_logging()
    logger = structlog.get_logger("status-tracker")
    if component:
        logger = logger.bind(component=component)
    return logger
