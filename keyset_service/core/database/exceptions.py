"""Query building exceptions.

Custom exceptions for ordering definitions and keyset cursors that
provide better error messages than bare ``ValueError``/``KeyError``.
"""
from __future__ import annotations

from typing import Any


class KeysetError(Exception):
    """Base exception for ordering and pagination query building.

    Raised when a query cannot be built because of programming errors
    or configuration issues. Runtime keyset problems (missing or NULL key
    values) never raise; they degrade to the first page instead.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize keyset error.

        Args:
            message: Error description
            details: Additional context about the error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Format error message with details."""
        if self.details:
            details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class OrderingDefinitionError(KeysetError):
    """Invalid ordering definition.

    Raised while a definition is being declared: no columns, duplicate
    names, key columns that are not required, columns added after the
    default ordering was set.
    """

    def __init__(self, message: str, column: str | None = None):
        details = {"column": column} if column else {}
        super().__init__(message, details=details)


class InvalidOrderingError(KeysetError):
    """Ordering input references an unknown column or direction.

    Attributes:
        token: The offending input item, if known
    """

    def __init__(self, message: str, token: Any = None):
        self.token = token
        details = {"token": token} if token is not None else {}
        super().__init__(message, details=details)


class CursorError(KeysetError):
    """Cursor was asked for a column it was not built for.

    This indicates a programming error (the cursor and the ordering in
    effect disagree), not a client error.
    """

    def __init__(self, message: str, column: str):
        self.column = column
        super().__init__(message, details={"column": column})


__all__ = [
    "CursorError",
    "InvalidOrderingError",
    "KeysetError",
    "OrderingDefinitionError",
]
