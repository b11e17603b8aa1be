"""FastAPI dependencies for route handlers."""

from __future__ import annotations

from .pagination import (
    KeysetParams,
    get_keyset_params,
    ordering_dependency,
    pagination_dependency,
)

__all__ = [
    "KeysetParams",
    "get_keyset_params",
    "ordering_dependency",
    "pagination_dependency",
]
