"""Structured logging infrastructure.

Usage:
    from keyset_service.infra.logging import setup_logging, get_lazy_logger

    setup_logging()
    logger = get_lazy_logger(__name__)
    logger.debug(lambda: f"expensive {value!r}")
"""

from __future__ import annotations

from keyset_service.infra.logging.config import (
    complete,
    configure_logging,
    setup_logging,
    shutdown,
)
from keyset_service.infra.logging.context import (
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    log_context,
    set_log_context,
)
from keyset_service.infra.logging.formatters import JSONFormatter
from keyset_service.infra.logging.lazy import (
    LazyLoggerAdapter,
    LazyString,
    get_lazy_logger,
    lazy,
)

__all__ = [
    "ContextInjectingFilter",
    "JSONFormatter",
    "LazyLoggerAdapter",
    "LazyString",
    "clear_log_context",
    "complete",
    "configure_logging",
    "get_lazy_logger",
    "get_log_context",
    "lazy",
    "log_context",
    "set_log_context",
    "setup_logging",
    "shutdown",
]
