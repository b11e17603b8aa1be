"""Immutable, canonical orderings."""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from keyset_service.core.ordering.column import SortDirection
from keyset_service.core.ordering.context import BLANKET_PERMISSION, QueryContext

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement
    from sqlalchemy.sql.expression import FromClause

    from keyset_service.core.ordering.definition import OrderingDefinition


class OrderingSpec:
    """Ordered, duplicate-free list of ``(column, direction)`` pairs.

    Instances are values: ``toggle``, ``reorder`` and ``invert`` return new
    specs and leave the receiver untouched. Every spec produced by its
    definition already contains all required columns.

    Attributes:
        definition: Definition the ordering was canonicalized against.
        items: The ``(name, direction)`` pairs, most significant first.
        inverted: Spec is the backward traversal of a user ordering.
            Explicit null placement is mirrored when set.
    """

    __slots__ = ("definition", "inverted", "items")

    def __init__(
        self,
        definition: OrderingDefinition,
        items: tuple[tuple[str, SortDirection], ...],
        *,
        inverted: bool = False,
    ) -> None:
        self.definition = definition
        self.items = tuple(items)
        self.inverted = inverted

    def __iter__(self) -> Iterator[tuple[str, SortDirection]]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OrderingSpec):
            return NotImplemented
        return (
            self.definition is other.definition
            and self.items == other.items
            and self.inverted == other.inverted
        )

    def __hash__(self) -> int:
        return hash((id(self.definition), self.items, self.inverted))

    def __repr__(self) -> str:
        flag = ", inverted=True" if self.inverted else ""
        return f"OrderingSpec({self.marshal()!r}{flag})"

    def to_array(self, context: QueryContext | None = None) -> list[tuple[str, SortDirection]]:
        """Return the pairs the context permits; required columns always stay."""
        context = context or BLANKET_PERMISSION
        return [
            (name, direction)
            for name, direction in self.items
            if context.name_permitted(name) or self.definition.is_required(name)
        ]

    def by_columns(self) -> dict[str, tuple[SortDirection, int | None]]:
        """Map every defined column to its direction and position.

        Columns absent from the ordering map to ``(NONE, None)``.
        """
        result: dict[str, tuple[SortDirection, int | None]] = {
            name: (SortDirection.NONE, None) for name in self.definition.columns
        }
        for index, (name, direction) in enumerate(self.items):
            result[name] = (direction, index)
        return result

    def order_for(self, name: str) -> SortDirection:
        for item_name, direction in self.items:
            if item_name == name:
                return direction
        return SortDirection.NONE

    def marshal(self, context: QueryContext | None = None) -> str:
        """Format as ``"name-dir|name-dir"`` using the definition's delimiters."""
        fd = self.definition.field_delimiter
        return self.definition.column_delimiter.join(
            f"{name}{fd}{direction}" for name, direction in self.to_array(context)
        )

    def toggle(self, name: str) -> OrderingSpec:
        """Move ``name`` to the front and flip it between its two directions.

        A column that is absent, or sorted opposite to its default, comes
        back in its default direction. A column already sorted in its
        default direction switches to the opposite one.
        """
        column = self.definition.column(name)
        old = self.order_for(name)
        primary, secondary = column.direction, column.direction.opposite
        new = secondary if old is primary else primary
        return self._prepend(name, new)

    def reorder(self, name: str, direction: SortDirection | str) -> OrderingSpec:
        """Move ``name`` to the front with ``direction``; ``none`` removes it.

        Removing a required column only moves it to the back, since required
        columns are always appended again.
        """
        self.definition.column(name)
        return self._prepend(name, SortDirection(direction))

    def invert(self) -> OrderingSpec:
        """Flip every direction, keeping the column order."""
        items = tuple((name, direction.opposite) for name, direction in self.items)
        return OrderingSpec(self.definition, items, inverted=not self.inverted)

    def to_clauses(
        self,
        table: FromClause,
        context: QueryContext | None = None,
    ) -> list[ColumnElement[Any]]:
        """Build ORDER BY clauses for the permitted columns."""
        context = context or BLANKET_PERMISSION
        clauses: list[ColumnElement[Any]] = []
        for name, direction in self.to_array(context):
            column = self.definition.columns[name]
            attribute = column.attribute(name, table, context)
            clauses.extend(column.clauses(attribute, direction, inverted=self.inverted))
        return clauses

    def _prepend(self, name: str, direction: SortDirection) -> OrderingSpec:
        rest = [item for item in self.items if item[0] != name]
        if direction is not SortDirection.NONE:
            rest.insert(0, (name, direction))
        items = self.definition.with_required(rest)
        return OrderingSpec(self.definition, items, inverted=self.inverted)
