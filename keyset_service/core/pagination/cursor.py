"""Cursor resolution.

A cursor maps every ordering column to the boundary value the keyset
predicate compares against. Values supplied by the caller's keyset are
used literally. Values the caller does not know are looked up from the
reference row through one shared CTE, selected from the base query and
restricted by the literal key columns.

Example SQL for a keyset ``{"id": 11}`` ordered by ``ranking`` then ``id``:

    WITH ranking_cte AS (
        SELECT users.ranking AS ranking FROM users WHERE users.id = 11
    )
    ... users.ranking < (SELECT ranking_cte.ranking FROM ranking_cte) ...
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, false, select
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.sql.selectable import CTE, Select

from keyset_service.core.database.exceptions import CursorError
from keyset_service.core.settings import get_pagination_settings
from keyset_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from sqlalchemy.sql.expression import FromClause

    from keyset_service.core.ordering.column import Column
    from keyset_service.core.ordering.context import QueryContext

logger = get_lazy_logger(__name__)


def safe_name(name: str) -> str:
    """Truncate a generated SQL identifier to the configured maximum."""
    return name[: get_pagination_settings().identifier_max_length]


def cte_name(names: Sequence[str]) -> str:
    """Name of the lookup CTE for a set of derived column names."""
    return safe_name("_".join(sorted(names)) + "_cte")


class DerivedLookupCache:
    """Per-request cache of derived-value CTEs.

    Entries are keyed by the set of derived names and the relation the
    lookup selects from. Two cursors that need the same derived columns
    from the same base query share one CTE object, so the statement
    renders a single ``WITH`` entry for them.
    """

    def __init__(self) -> None:
        self._ctes: dict[tuple[frozenset[str], Any], CTE] = {}

    def __len__(self) -> int:
        return len(self._ctes)

    def __contains__(self, names: object) -> bool:
        return any(cached == names for cached, _ in self._ctes)

    def get_or_create(
        self,
        names: frozenset[str],
        factory: Callable[[], CTE],
        source: Any = None,
    ) -> CTE:
        key = (names, source)
        cte = self._ctes.get(key)
        if cte is None:
            cte = factory()
            self._ctes[key] = cte
            logger.debug(lambda: f"Derived lookup {cte.name!r} created for {sorted(names)}")
        return cte


@dataclass(frozen=True, slots=True)
class Literal:
    """Boundary value supplied directly by the keyset."""

    name: str
    value: Any
    is_key: bool

    def rvalue(self, cte: CTE | None) -> Any:
        return self.value


@dataclass(frozen=True, slots=True)
class Selector:
    """Boundary value looked up from the reference row."""

    name: str
    column: Column

    def expression(self, table: FromClause, context: QueryContext) -> ColumnElement[Any]:
        return self.column.attribute(self.name, table, context).label(self.name)

    def rvalue(self, cte: CTE | None) -> ColumnElement[Any]:
        if cte is None:
            msg = "Derived value requested without a lookup"
            raise CursorError(msg, self.name)
        return select(cte.c[self.name]).scalar_subquery()


class Cursor:
    """Resolved boundary values for one pagination request.

    Attributes:
        literals: Values supplied by the keyset.
        selectors: Values derived through the lookup CTE.
        cte: The lookup CTE, or ``None`` when nothing is derived.
    """

    def __init__(
        self,
        select_list: Sequence[Literal | Selector],
        table: FromClause,
        context: QueryContext,
        query: Select[Any] | None = None,
        cache: DerivedLookupCache | None = None,
    ) -> None:
        items: dict[str, Literal | Selector] = {}
        for item in select_list:
            if item.name in items:
                msg = f"Repeated key in select list: '{item.name}'"
                raise CursorError(msg, item.name)
            items[item.name] = item

        self._items: Mapping[str, Literal | Selector] = MappingProxyType(items)
        self.literals: tuple[Literal, ...] = tuple(
            item for item in select_list if isinstance(item, Literal)
        )
        self.selectors: tuple[Selector, ...] = tuple(
            item for item in select_list if isinstance(item, Selector)
        )
        self._table = table
        self._context = context

        self.cte: CTE | None = None
        if self.selectors:
            names = frozenset(selector.name for selector in self.selectors)
            base = query if query is not None else select(table)
            cache = cache if cache is not None else DerivedLookupCache()
            source = query if query is not None else table
            self.cte = cache.get_or_create(names, lambda: self._lookup(base, names), source)

    @property
    def cte_name(self) -> str | None:
        return self.cte.name if self.cte is not None else None

    def __contains__(self, name: object) -> bool:
        return name in self._items

    def is_derived(self, name: str) -> bool:
        return isinstance(self._item(name), Selector)

    def rvalue(self, name: str) -> Any:
        """Boundary value of ``name``: a literal or a scalar subquery."""
        return self._item(name).rvalue(self.cte)

    def _item(self, name: str) -> Literal | Selector:
        try:
            return self._items[name]
        except KeyError:
            msg = f"Column not in cursor: '{name}'"
            raise CursorError(msg, name) from None

    def _lookup(self, query: Select[Any], names: frozenset[str]) -> CTE:
        expressions = [selector.expression(self._table, self._context) for selector in self.selectors]
        key_predicates = [
            self._table.c[literal.name] == literal.value
            for literal in self.literals
            if literal.is_key
        ]
        lookup = (
            query.with_only_columns(*expressions, maintain_column_froms=True)
            .order_by(None)
            .limit(None)
            .offset(None)
        )
        # Without key values there is no reference row
        lookup = lookup.where(and_(*key_predicates) if key_predicates else false())
        return lookup.cte(cte_name(list(names)))


class CursorBuilder:
    """Collects ordering columns into a ``Cursor``.

    Columns present in the keyset become literals, the rest selectors.
    """

    def __init__(
        self,
        keyset: Mapping[str, Any],
        table: FromClause,
        context: QueryContext,
        *,
        query: Select[Any] | None = None,
        cache: DerivedLookupCache | None = None,
    ) -> None:
        self._keyset = MappingProxyType(dict(keyset))
        self._table = table
        self._context = context
        self._query = query
        self._cache = cache
        self._select_list: list[Literal | Selector] = []

    def add(self, name: str, column: Column) -> CursorBuilder:
        if name in self._keyset:
            self._select_list.append(Literal(name, self._keyset[name], column.is_key))
        else:
            self._select_list.append(Selector(name, column))
        return self

    def build(self) -> Cursor:
        return Cursor(
            self._select_list,
            self._table,
            self._context,
            query=self._query,
            cache=self._cache,
        )
