"""Deferred log messages.

Predicate and cursor logging renders SQL and keyset dumps, which is too
costly to do on every request. The adapter here accepts zero-argument
callables in place of the message or its arguments and only calls them
when the record would actually be emitted.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

type Deferred = Callable[[], Any]


def _resolve(value: Any) -> Any:
    return value() if callable(value) else value


class LazyString:
    """String whose text is produced on first use of ``str()``.

    Handy as a ``%s`` argument for plain loggers:

        logger.debug("Keyset SQL: %s", LazyString(lambda: render(stmt)))
    """

    __slots__ = ("_func",)

    def __init__(self, func: Deferred) -> None:
        self._func = func

    def __str__(self) -> str:
        return str(self._func())

    def __repr__(self) -> str:
        return f"LazyString({self._func!r})"


class LazyLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter resolving callables only for enabled levels.

    Bound context (``get_lazy_logger(name, table="users")``) is merged into
    every record's ``extra`` without replacing values passed per call.
    """

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        if self.extra:
            kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs

    def log(self, level: int, msg: Any, *args: Any, **kwargs: Any) -> None:
        if not self.isEnabledFor(level):
            return
        resolved = tuple(_resolve(arg) for arg in args)
        super().log(level, _resolve(msg), *resolved, **kwargs)

    def debug(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self.log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self.log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self.log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self.log(logging.ERROR, msg, *args, **kwargs)


def get_lazy_logger(name: str, **context: Any) -> LazyLoggerAdapter:
    """Return a ``LazyLoggerAdapter`` for ``name`` with ``context`` bound."""
    bound: Mapping[str, Any] = dict(context)
    return LazyLoggerAdapter(logging.getLogger(name), bound)


def lazy(func: Deferred) -> LazyString:
    return LazyString(func)
