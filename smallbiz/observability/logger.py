"""
Structured Logging

Every mutation of the books and every license decision is logged as a
snake_case event with keyword context, e.g.

    logger.info("transaction_created", transaction_id="1735689600000")

Logs go to the local stdlib handler only. There is no persisted audit trail.
"""

import logging
import sys
from typing import Optional

import structlog


_configured = False


def configure_logging(level: Optional[str] = None, force: bool = False) -> None:
    """
    Configure structlog on top of the stdlib logging module.

    Safe to call more than once; only the first call (or a call with
    force=True) takes effect.
    """
    global _configured
    if _configured and not force:
        return

    if level is None:
        from smallbiz.config import get_settings
        level = get_settings().app.log_level

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
        force=force,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Get a bound logger, configuring logging on first use."""
    configure_logging()
    return structlog.get_logger(name)
