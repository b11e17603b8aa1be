"""JSON Lines formatter."""
from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.sql import ClauseElement

# Attributes every LogRecord carries; anything else came from extra/context
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_DEFAULT_KEYS = {"level": "levelname", "logger": "name", "message": "message"}


def _json_default(value: Any) -> Any:
    if isinstance(value, ClauseElement):
        return " ".join(str(value).split())
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with a UTC ``timestamp`` ending in ``Z``.

    Extra attributes (``extra=...``, bound adapter context, the contextvars
    log context) are emitted as top-level keys. SQLAlchemy expressions
    among them are rendered as single-line SQL.

    Example output:
        {"level": "DEBUG", "logger": "keyset_service.core.pagination.keyset",
         "message": "Paginating 'users' AFTER keyset {'id': 11}",
         "timestamp": "2025-01-01T00:00:00.123Z", "service": "keyset-service"}
    """

    def __init__(
        self,
        fmt_keys: dict[str, str] | None = None,
        static: dict[str, Any] | None = None,
    ) -> None:
        """Initialize JSON formatter.

        Args:
            fmt_keys: Output key to LogRecord attribute mapping.
            static: Fields added to every record, e.g. ``{"service": "api"}``.
        """
        super().__init__()
        self.fmt_keys = dict(fmt_keys or _DEFAULT_KEYS)
        self.static = dict(static or {})

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        data: dict[str, Any] = {key: getattr(record, attr, None) for key, attr in self.fmt_keys.items()}
        data["timestamp"] = self._timestamp(record)

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            data["stack_trace"] = self.formatStack(record.stack_info)

        data.update(self.static)
        data.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and key not in data
        )
        # json.dumps escapes newlines, one record stays on one line
        return json.dumps(data, ensure_ascii=False, default=_json_default)

    @staticmethod
    def _timestamp(record: logging.LogRecord) -> str:
        moment = datetime.fromtimestamp(record.created, tz=UTC)
        return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
