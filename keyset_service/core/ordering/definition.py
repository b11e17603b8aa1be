"""Ordering definitions.

An ``OrderingDefinition`` is the closed set of columns a resource can be
ordered by. It canonicalizes raw ordering input (a delimited string or a
list of ``(name, direction)`` pairs) into an immutable ``OrderingSpec``.

Example:
    ```python
    definition = (
        OrderingDefinitionBuilder()
        .column("email", "asc")
        .column("ranking", "desc", nulls="last")
        .key("id", "asc")
        .default(("email", "asc"))
        .build()
    )
    spec = definition.canonicalize("ranking-desc|email-asc")
    spec.marshal()  # "ranking-desc|email-asc|id-asc"
    ```
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any, Self

from keyset_service.core.database.exceptions import (
    InvalidOrderingError,
    OrderingDefinitionError,
)
from keyset_service.core.ordering.column import Column, NullPolicy, SortDirection
from keyset_service.core.ordering.spec import OrderingSpec
from keyset_service.core.settings import get_pagination_settings
from keyset_service.infra.logging import get_lazy_logger

logger = get_lazy_logger(__name__)

type OrderingInput = str | Iterable[Any] | OrderingSpec | None


class OrderingDefinition:
    """Closed set of sortable columns plus the default ordering.

    Attributes:
        columns: Read-only mapping of column name to ``Column``, in
            declaration order.
        required: Names of required columns, in declaration order.
        keys: Names of the columns that together identify a row.
        default: Ordering used when no input is given.
    """

    def __init__(
        self,
        columns: Mapping[str, Column],
        default: OrderingInput = None,
        *,
        column_delimiter: str | None = None,
        field_delimiter: str | None = None,
    ) -> None:
        if not columns:
            msg = "No ordering column defined"
            raise OrderingDefinitionError(msg)

        for name, column in columns.items():
            if not isinstance(column, Column):
                msg = f"Invalid ordering column: {column!r}"
                raise OrderingDefinitionError(msg, column=name)
            if column.is_key and not column.required:
                msg = "Key columns must be required"
                raise OrderingDefinitionError(msg, column=name)

        settings = get_pagination_settings()
        self.column_delimiter = column_delimiter or settings.column_delimiter
        self.field_delimiter = field_delimiter or settings.field_delimiter

        self.columns: Mapping[str, Column] = MappingProxyType(dict(columns))
        self.required: tuple[str, ...] = tuple(
            name for name, column in self.columns.items() if column.required
        )
        self.keys: tuple[str, ...] = tuple(
            name for name, column in self.columns.items() if column.is_key
        )
        self.default: OrderingSpec = self.canonicalize(default)

    def __repr__(self) -> str:
        return f"OrderingDefinition(columns={list(self.columns)!r}, keys={list(self.keys)!r})"

    def is_required(self, name: str) -> bool:
        return name in self.required

    def column(self, name: str) -> Column:
        """Look up a column by name.

        Raises:
            InvalidOrderingError: If the column is not defined.
        """
        try:
            return self.columns[name]
        except KeyError:
            msg = f"Unknown ordering column: '{name}'"
            raise InvalidOrderingError(msg, token=name) from None

    def canonicalize(self, value: OrderingInput) -> OrderingSpec:
        """Turn raw ordering input into a canonical ``OrderingSpec``.

        Items are validated, ``none`` directions are dropped, repeated
        columns keep their first occurrence and required columns missing
        from the input are appended with their default direction.

        Args:
            value: Delimited string, iterable of ``(name, direction)``
                pairs, an existing spec, or ``None`` for an empty ordering.

        Raises:
            InvalidOrderingError: On an unknown column or direction.
        """
        if isinstance(value, OrderingSpec):
            if value.definition is not self:
                msg = "Ordering belongs to another definition"
                raise InvalidOrderingError(msg, token=value.marshal())
            return value

        if value is None:
            items: list[tuple[str, SortDirection]] = []
        elif isinstance(value, str):
            raw = value.split(self.column_delimiter) if value else []
            items = [self._parse_token(token) for token in raw]
        else:
            items = [self._parse_pair(pair) for pair in value]

        spec = OrderingSpec(self, self.with_required(self.unique_columns(items)))
        logger.debug(lambda: f"Canonical ordering {spec.marshal()!r} from {value!r}")
        return spec

    def unique_columns(
        self,
        items: Iterable[tuple[str, SortDirection]],
    ) -> list[tuple[str, SortDirection]]:
        """Drop ``none`` items and repeated columns, first occurrence wins."""
        seen: set[str] = set()
        result: list[tuple[str, SortDirection]] = []
        for name, direction in items:
            if name in seen:
                continue
            seen.add(name)
            if direction is SortDirection.NONE:
                continue
            result.append((name, direction))
        return result

    def with_required(
        self,
        items: list[tuple[str, SortDirection]],
    ) -> tuple[tuple[str, SortDirection], ...]:
        """Append required columns absent from ``items``."""
        present = {name for name, _ in items}
        missing = [
            (name, self.columns[name].direction)
            for name in self.required
            if name not in present
        ]
        return tuple(items + missing)

    def _parse_token(self, token: str) -> tuple[str, SortDirection]:
        name, sep, direction = token.rpartition(self.field_delimiter)
        if not sep:
            msg = f"Malformed ordering item: '{token}'"
            raise InvalidOrderingError(msg, token=token)
        return self._parse_pair((name, direction))

    def _parse_pair(self, pair: Any) -> tuple[str, SortDirection]:
        try:
            name, direction = pair
        except (TypeError, ValueError):
            msg = f"Ordering item must be a (name, direction) pair: {pair!r}"
            raise InvalidOrderingError(msg, token=pair) from None

        name = str(name)
        if name not in self.columns:
            msg = f"Unknown ordering column: '{name}'"
            raise InvalidOrderingError(msg, token=pair)
        try:
            return name, SortDirection(direction)
        except ValueError:
            msg = f"Invalid ordering direction: '{direction}'"
            raise InvalidOrderingError(msg, token=pair) from None


class OrderingDefinitionBuilder:
    """Fluent builder for ``OrderingDefinition``.

    Columns are declared in significance order. ``key`` declares a column
    that is both required and part of the row identity.
    """

    def __init__(
        self,
        *,
        column_delimiter: str | None = None,
        field_delimiter: str | None = None,
    ) -> None:
        self._columns: dict[str, Column] = {}
        self._default: OrderingInput = None
        self._default_defined = False
        self._column_delimiter = column_delimiter
        self._field_delimiter = field_delimiter

    def column(
        self,
        name: str,
        direction: SortDirection | str,
        *,
        nulls: NullPolicy | str = NullPolicy.DEFAULT,
        required: bool = False,
        is_key: bool = False,
        table: Any = None,
        expression: Any = None,
        value_type: Any = None,
    ) -> Self:
        if name in self._columns:
            msg = f"Column name taken: {name}"
            raise OrderingDefinitionError(msg, column=name)
        if self._default_defined:
            msg = "Can't add column after default defined"
            raise OrderingDefinitionError(msg, column=name)

        self._columns[name] = Column(
            direction=direction,
            nulls=nulls,
            required=required,
            is_key=is_key,
            table=table,
            expression=expression,
            value_type=value_type,
        )
        return self

    def key(self, name: str, direction: SortDirection | str, **options: Any) -> Self:
        return self.column(name, direction, required=True, is_key=True, **options)

    def default(self, *items: Any) -> Self:
        """Set the default ordering, given as ``(name, direction)`` pairs."""
        self._default = list(items)
        self._default_defined = True
        return self

    def build(self) -> OrderingDefinition:
        return OrderingDefinition(
            self._columns,
            self._default,
            column_delimiter=self._column_delimiter,
            field_delimiter=self._field_delimiter,
        )
