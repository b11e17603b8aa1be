"""Sortable column descriptors."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from functools import lru_cache
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter
from sqlalchemy import case, literal_column
from sqlalchemy.sql.elements import ColumnElement

from keyset_service.core.database.exceptions import OrderingDefinitionError

if TYPE_CHECKING:
    from sqlalchemy.sql.expression import FromClause

    from keyset_service.core.ordering.context import QueryContext


class SortDirection(StrEnum):
    """Direction of a single ordering item.

    ``NONE`` only appears transiently, when a caller asks for a column to be
    removed from an ordering. It never persists in an ``OrderingSpec``.
    """

    NONE = "none"
    ASC = "asc"
    DESC = "desc"

    @property
    def opposite(self) -> SortDirection:
        if self is SortDirection.ASC:
            return SortDirection.DESC
        if self is SortDirection.DESC:
            return SortDirection.ASC
        return SortDirection.NONE


class NullPolicy(StrEnum):
    """Placement of NULL values relative to non-null ones."""

    DEFAULT = "default"
    FIRST = "first"
    LAST = "last"


# Sort key substitutions for explicit null placement
NULLS_FIRST = {"null": 0, "not_null": 1}
NULLS_LAST = {"null": 1, "not_null": 0}

type ColumnExpression = (
    str
    | ColumnElement[Any]
    | Callable[[FromClause, QueryContext], str | ColumnElement[Any]]
    | None
)


@lru_cache(maxsize=64)
def _adapter(value_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(value_type)


def _coerce(expression: str | ColumnElement[Any]) -> ColumnElement[Any]:
    if isinstance(expression, str):
        return literal_column(expression)
    return expression


@dataclass(frozen=True, slots=True)
class Column:
    """One sortable attribute of an ordering definition.

    Attributes:
        direction: Default direction, used when the column is back-filled
            as required or toggled for the first time.
        nulls: Null placement policy. ``DEFAULT`` leaves placement to the
            database and treats the column as non-nullable when building
            keyset predicates.
        required: Column is appended to every ordering that lacks it.
        is_key: Column is part of the set that uniquely identifies a row.
        table: Table to resolve the column against instead of the
            pagination's base table.
        expression: How to resolve the column. ``None`` resolves by name,
            a string is a literal SQL fragment, a ``ColumnElement`` is used
            as is and a callable receives ``(table, context)``.
        value_type: Python type of the column's values. Keyset values
            decoded from a token are validated into it, so an ISO string
            becomes a ``datetime`` again.
    """

    direction: SortDirection
    nulls: NullPolicy = NullPolicy.DEFAULT
    required: bool = False
    is_key: bool = False
    table: FromClause | None = None
    expression: ColumnExpression = None
    value_type: Any = None

    def __post_init__(self) -> None:
        try:
            direction = SortDirection(self.direction)
            nulls = NullPolicy(self.nulls)
        except ValueError as exc:
            raise OrderingDefinitionError(str(exc)) from exc
        if direction is SortDirection.NONE:
            msg = f"Invalid default direction: '{direction}'"
            raise OrderingDefinitionError(msg)
        object.__setattr__(self, "direction", direction)
        object.__setattr__(self, "nulls", nulls)

    def attribute(
        self,
        name: str,
        default_table: FromClause,
        context: QueryContext,
    ) -> ColumnElement[Any]:
        """Resolve the column to a SQL expression."""
        table = self.table if self.table is not None else default_table
        expression = self.expression
        if expression is None:
            return table.c[name]
        if callable(expression) and not isinstance(expression, ColumnElement):
            return _coerce(expression(table, context))
        return _coerce(expression)

    def parse_value(self, value: Any) -> Any:
        """Validate a decoded keyset value into ``value_type``.

        Raises:
            pydantic.ValidationError: If the value does not fit the type.
        """
        if self.value_type is None or value is None:
            return value
        return _adapter(self.value_type).validate_python(value)

    def clauses(
        self,
        attribute: ColumnElement[Any],
        direction: SortDirection,
        *,
        inverted: bool = False,
    ) -> list[ColumnElement[Any]]:
        """Build ORDER BY clauses for the column.

        An explicit null policy adds a CASE sort key ahead of the column's
        own clause so that NULL placement does not depend on the dialect.
        """
        if direction is SortDirection.ASC:
            clause = attribute.asc()
        elif direction is SortDirection.DESC:
            clause = attribute.desc()
        else:
            msg = f"Unexpected ordering: '{direction}'"
            raise OrderingDefinitionError(msg)

        if self.nulls is NullPolicy.DEFAULT:
            return [clause]

        values = self.null_substitution_values(inverted=inverted)
        sort_key = case(
            (attribute.is_(None), values["null"]),
            else_=values["not_null"],
        )
        return [sort_key, clause]

    def null_substitution_values(self, *, inverted: bool) -> dict[str, int]:
        match (self.nulls, inverted):
            case (NullPolicy.FIRST, False) | (NullPolicy.LAST, True):
                return NULLS_FIRST
            case (NullPolicy.LAST, False) | (NullPolicy.FIRST, True):
                return NULLS_LAST
            case _:
                msg = f"Unimplemented null handling policy: '{self.nulls}'"
                raise OrderingDefinitionError(msg)
