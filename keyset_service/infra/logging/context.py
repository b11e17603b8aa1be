"""Per-request logging context.

Fields such as a request id or the table being paginated are stored in a
``ContextVar``, so concurrent requests never see each other's values, and
copied onto log records by ``ContextInjectingFilter``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Any

_EMPTY: MappingProxyType[str, Any] = MappingProxyType({})

_log_context: ContextVar[MappingProxyType[str, Any]] = ContextVar("log_context", default=_EMPTY)


def set_log_context(**fields: Any) -> None:
    """Add ``fields`` to the current context, replacing same-named ones."""
    _log_context.set(MappingProxyType({**_log_context.get(), **fields}))


def get_log_context() -> dict[str, Any]:
    return dict(_log_context.get())


def clear_log_context() -> None:
    _log_context.set(_EMPTY)


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Bind ``fields`` for the duration of the block.

    Example:
        with log_context(table="users", ordering=spec.marshal()):
            rows = conn.execute(stmt).all()
    """
    token = _log_context.set(MappingProxyType({**_log_context.get(), **fields}))
    try:
        yield
    finally:
        _log_context.reset(token)


class ContextInjectingFilter(logging.Filter):
    """Copy the current log context onto each record.

    Attributes already present on the record (``extra=...``) take
    precedence over context fields.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if key not in record.__dict__:
                setattr(record, key, value)
        return True
