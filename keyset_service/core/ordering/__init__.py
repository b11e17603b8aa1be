"""Ordering definitions and the orderings they produce.

Usage:
    from keyset_service.core.ordering import OrderingDefinitionBuilder

    definition = (
        OrderingDefinitionBuilder()
        .column("name", "asc")
        .key("id", "asc")
        .build()
    )
    spec = definition.canonicalize(request_value)
    stmt = select(users).order_by(*spec.to_clauses(users))
"""

from __future__ import annotations

from keyset_service.core.ordering.column import Column, NullPolicy, SortDirection
from keyset_service.core.ordering.context import BLANKET_PERMISSION, QueryContext
from keyset_service.core.ordering.definition import (
    OrderingDefinition,
    OrderingDefinitionBuilder,
)
from keyset_service.core.ordering.spec import OrderingSpec

__all__ = [
    "BLANKET_PERMISSION",
    "Column",
    "NullPolicy",
    "OrderingDefinition",
    "OrderingDefinitionBuilder",
    "OrderingSpec",
    "QueryContext",
    "SortDirection",
]
