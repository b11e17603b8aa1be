"""Process-wide logging setup.

The root logger gets a single ``QueueHandler``; a ``QueueListener`` thread
feeds the console and file handlers, so request handling never blocks on
log I/O. Root level and filters are applied through ``dictConfig``.
"""

from __future__ import annotations

import atexit
import logging
import logging.config
import time
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from queue import SimpleQueue
from typing import TYPE_CHECKING, Any

from keyset_service.infra.logging.context import ContextInjectingFilter
from keyset_service.infra.logging.formatters import JSONFormatter

if TYPE_CHECKING:
    from keyset_service.core.settings.logs import LoggingSettings

logger = logging.getLogger(__name__)

_TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
_TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"

_queue: SimpleQueue[logging.LogRecord] | None = None
_listener: QueueListener | None = None
_queue_handler: QueueHandler | None = None
_LOGGING_INITIALIZED = False
_ATEXIT_REGISTERED = False


def complete(max_wait: float = 5.0) -> None:
    """Block until queued records are handled or ``max_wait`` seconds pass."""
    if _queue is None or _listener is None:
        return
    deadline = time.monotonic() + max_wait
    while not _queue.empty() and time.monotonic() < deadline:
        time.sleep(0.01)


def shutdown() -> None:
    """Drain the queue, stop the listener and detach the root handler."""
    global _queue, _listener, _queue_handler

    if _listener is not None:
        complete()
        _listener.stop()
        for handler in _listener.handlers:
            handler.close()
        _listener = None

    if _queue_handler is not None:
        logging.getLogger().removeHandler(_queue_handler)
        _queue_handler = None

    _queue = None


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
    **overrides: Any,
) -> None:
    """Configure logging from settings once per process.

    Args:
        log_settings: Settings to apply; loaded with ``get_logging_settings``
            when omitted.
        force: Configure again even if already done.
        **overrides: Keyword arguments for ``configure_logging`` that win
            over the settings.
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    if log_settings is None:
        from keyset_service.core.settings import get_logging_settings

        log_settings = get_logging_settings()

    configure_logging(**{**log_settings.to_logging_kwargs(), **overrides})
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    file_path: str | Path | None = None,
    json_logs: bool = True,
    console_enabled: bool = True,
    include_context: bool = True,
    service_name: str = "keyset-service",
    capture_warnings: bool = True,
    file_max_bytes: int = 10 * 1024 * 1024,
    file_backup_count: int = 5,
    **kwargs: Any,
) -> None:
    """(Re)configure the root logger.

    Args:
        log_level: Root logger level name.
        file_path: Rotating log file; ``None`` disables file output.
        json_logs: JSON Lines output instead of plain text.
        console_enabled: Write to stderr.
        include_context: Copy the contextvars log context onto records.
        service_name: Static ``service`` field of JSON records.
        capture_warnings: Route ``warnings`` through logging.
        file_max_bytes: Size at which the log file rotates.
        file_backup_count: Rotated files kept.
        **kwargs: Unknown options; reported at DEBUG and ignored.
    """
    global _queue, _listener, _queue_handler, _ATEXIT_REGISTERED

    shutdown()

    path = Path(file_path) if file_path else None
    if path is not None:
        path.parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"context": {"()": ContextInjectingFilter}} if include_context else {},
            "root": {
                "level": log_level.upper(),
                "handlers": [],
                "filters": ["context"] if include_context else [],
            },
        }
    )
    logging.captureWarnings(capture_warnings)

    formatter = _build_formatter(json_logs, service_name)
    handlers: list[logging.Handler] = []
    if console_enabled:
        handlers.append(logging.StreamHandler())
    if path is not None:
        handlers.append(
            RotatingFileHandler(
                path,
                maxBytes=file_max_bytes,
                backupCount=file_backup_count,
                encoding="utf-8",
            )
        )
    for handler in handlers:
        handler.setFormatter(formatter)

    _queue = SimpleQueue()
    _queue_handler = QueueHandler(_queue)
    if include_context:
        # Root logger filters skip records propagated from child loggers
        _queue_handler.addFilter(ContextInjectingFilter())
    logging.getLogger().addHandler(_queue_handler)

    if handlers:
        _listener = QueueListener(_queue, *handlers, respect_handler_level=True)
        _listener.start()
        if not _ATEXIT_REGISTERED:
            atexit.register(shutdown)
            _ATEXIT_REGISTERED = True

    if kwargs:
        logger.debug("Ignoring unknown logging options: %s", ", ".join(sorted(kwargs)))


def _build_formatter(json_logs: bool, service_name: str) -> logging.Formatter:
    if json_logs:
        return JSONFormatter(static={"service": service_name})
    return logging.Formatter(fmt=_TEXT_FORMAT, datefmt=_TEXT_DATEFMT)
