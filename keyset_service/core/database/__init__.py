"""Statement filter base and query building exceptions."""

from keyset_service.core.database.exceptions import (
    CursorError,
    InvalidOrderingError,
    KeysetError,
    OrderingDefinitionError,
)
from keyset_service.core.database.filters import StatementFilter

__all__ = [
    "CursorError",
    "InvalidOrderingError",
    "KeysetError",
    "OrderingDefinitionError",
    "StatementFilter",
]
