"""Traversal direction and keyset predicate synthesis.

Both directions share one construction. ``BEFORE`` inverts the ordering
(``normalize``) and then builds the same predicate ``AFTER`` builds for
the inverted ordering; the ordering's ``inverted`` flag mirrors null placement.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from sqlalchemy import case
from sqlalchemy.sql.elements import ColumnElement

from keyset_service.core.database.exceptions import KeysetError
from keyset_service.core.ordering.column import NullPolicy, SortDirection
from keyset_service.core.ordering.context import BLANKET_PERMISSION, QueryContext
from keyset_service.core.pagination.cursor import Cursor, CursorBuilder, DerivedLookupCache
from keyset_service.core.pagination.keysets import AfterKeysets, BeforeKeysets, Transform
from keyset_service.core.pagination.nulls import Nulls
from keyset_service.core.pagination.tendency import Tendency
from keyset_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from sqlalchemy.sql.expression import FromClause
    from sqlalchemy.sql.selectable import Select

    from keyset_service.core.ordering.column import Column
    from keyset_service.core.ordering.spec import OrderingSpec

logger = get_lazy_logger(__name__)

_ALIASES = {"before": "bfr", "after": "aft"}


class Direction(StrEnum):
    BEFORE = "bfr"
    AFTER = "aft"

    @classmethod
    def _missing_(cls, value: object) -> Direction | None:
        if isinstance(value, str):
            alias = _ALIASES.get(value.lower())
            if alias is not None:
                return cls(alias)
        return None

    @classmethod
    def parse(cls, value: Direction | str) -> Direction:
        """Accept ``bfr``/``before`` and ``aft``/``after``."""
        try:
            return cls(value)
        except ValueError:
            msg = f"Unexpected direction: '{value}'"
            raise KeysetError(msg) from None

    @property
    def invert_ordering(self) -> bool:
        return self is Direction.BEFORE

    def normalize(self, ordering: OrderingSpec) -> OrderingSpec:
        """Ordering traversed forward when paging in this direction."""
        return ordering.invert() if self.invert_ordering else ordering

    def keysets(
        self,
        last: Any,
        keysets: Sequence[Any],
        transform: Transform | None = None,
    ) -> BeforeKeysets | AfterKeysets:
        """Wrap a fetched window for page accounting."""
        match self:
            case Direction.BEFORE:
                return BeforeKeysets(keysets, transform)
            case Direction.AFTER:
                return AfterKeysets(last, keysets, transform)

    def cursor_predicates(
        self,
        keyset: Mapping[str, Any],
        ordering: OrderingSpec,
        table: FromClause,
        context: QueryContext | None = None,
        *,
        query: Select[Any] | None = None,
        cache: DerivedLookupCache | None = None,
    ) -> tuple[Cursor, ColumnElement[bool]] | tuple[None, None]:
        """Build the cursor and the boundary predicate for ``keyset``.

        Returns ``(None, None)`` when a key column is missing or NULL in the
        keyset; the caller then serves the first page in this direction.

        Args:
            keyset: Boundary values by column name. Must contain every key
                column; other ordering columns are derived when absent.
            ordering: Ordering as the user sees it (not normalized).
            table: Base table the columns resolve against.
            context: Visibility and parameters for column resolution.
            query: Base query the derived-value lookup selects from.
            cache: Per-request cache of lookup CTEs.
        """
        context = context or BLANKET_PERMISSION
        keys = ordering.definition.keys
        if not all(keyset.get(key) is not None for key in keys):
            logger.debug(lambda: f"Incomplete keyset {dict(keyset)!r}, no boundary predicate")
            return None, None

        spec = self.normalize(ordering)
        columns = spec.to_array(context)
        definition = spec.definition

        builder = CursorBuilder(keyset, table, context, query=query, cache=cache)
        for name, _ in columns:
            builder.add(name, definition.columns[name])
        cursor = builder.build()

        predicate = self._boundary_predicate(spec, columns, cursor, table, context).self_group()
        logger.debug(
            lambda: f"Keyset predicate built ({self.name}, {spec.marshal()!r}, derived: {cursor.cte_name})",
        )
        return cursor, predicate

    def _boundary_predicate(
        self,
        spec: OrderingSpec,
        columns: list[tuple[str, SortDirection]],
        cursor: Cursor,
        table: FromClause,
        context: QueryContext,
    ) -> ColumnElement[bool]:
        definition = spec.definition
        remaining = set(definition.keys)
        chain: list[tuple[str, SortDirection, Column]] = []
        for name, direction in columns:
            column = definition.columns[name]
            chain.append((name, direction, column))
            if column.is_key:
                remaining.discard(name)
                if not remaining:
                    break
        else:
            msg = "Ordering does not end in a complete key"
            raise KeysetError(msg, details={"ordering": spec.marshal()})

        # The last key column terminates the tuple with a strict comparison
        name, direction, column = chain.pop()
        attribute = column.attribute(name, table, context)
        predicate = Tendency.for_direction(direction).comparison_predicate(
            attribute, cursor.rvalue(name)
        )

        for name, direction, column in reversed(chain):
            attribute = column.attribute(name, table, context)
            tendency = Tendency.for_direction(direction)
            value = cursor.rvalue(name)
            if column.nulls is NullPolicy.DEFAULT:
                predicate = tendency.non_nullable_predicate(attribute, value, predicate)
            else:
                nulls = Nulls.for_policy(column.nulls, inverted=spec.inverted)
                predicate = nullable_predicate(
                    tendency,
                    nulls,
                    attribute,
                    value,
                    predicate,
                    derived=cursor.is_derived(name),
                )
        return predicate


def nullable_predicate(
    tendency: Tendency,
    nulls: Nulls,
    attribute: ColumnElement[Any],
    value: Any,
    tail: ColumnElement[bool],
    *,
    derived: bool,
) -> ColumnElement[bool]:
    """Null-aware step for a column with an explicit null policy.

    A literal boundary value is checked for NULL here; a derived one is
    only known to the database, so both branches go into a CASE.
    """
    if not derived:
        if value is None:
            return nulls.if_null_predicate(attribute, tail)
        return nulls.if_not_null_predicate(tendency, attribute, value, tail)

    return case(
        (value.self_group().is_(None), nulls.if_null_predicate(attribute, tail)),
        else_=nulls.if_not_null_predicate(tendency, attribute, value, tail),
    )
