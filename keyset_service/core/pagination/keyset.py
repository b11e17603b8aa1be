"""Keyset pagination orchestrator.

``KeysetPagination`` is the value a request carries: page size, traversal
direction and the boundary keyset. It composes the ordering, the cursor
and the boundary predicate into statements against a caller's base query.

Example:
    ```python
    pagination = KeysetPagination(definition, limit=20, keyset={"id": 11})
    stmt = pagination.paginate(select(users), ordering, users)
    # SELECT ... FROM users WHERE EXISTS (
    #   SELECT 1 FROM (SELECT users.id AS id FROM users WHERE (users.id > 11)
    #                  ORDER BY users.id ASC LIMIT 20) AS users_id
    #   WHERE users.id = users_id.id)
    ```
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, exists, literal_column, select

from keyset_service.core.database.exceptions import OrderingDefinitionError
from keyset_service.core.ordering.context import BLANKET_PERMISSION, QueryContext
from keyset_service.core.pagination.cursor import DerivedLookupCache, safe_name
from keyset_service.core.pagination.direction import Direction
from keyset_service.core.pagination.keysets import AfterKeysets, BeforeKeysets, Transform
from keyset_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement
    from sqlalchemy.sql.expression import FromClause
    from sqlalchemy.sql.selectable import Select

    from keyset_service.core.ordering.definition import OrderingDefinition
    from keyset_service.core.ordering.spec import OrderingSpec
    from keyset_service.core.pagination.cursor import Cursor

logger = get_lazy_logger(__name__)


@dataclass(frozen=True)
class KeysetPagination:
    """Keyset pagination state for one request.

    Attributes:
        definition: Ordering definition providing the key columns.
        limit: Page size.
        direction: Traversal direction relative to ``keyset``.
        keyset: Boundary values by column name. Empty means the start of
            the sequence in ``direction``.
        cursor_columns: Columns a keyset carries, in order. Defaults to
            the definition's key columns.
    """

    definition: OrderingDefinition
    limit: int
    direction: Direction = Direction.AFTER
    keyset: Mapping[str, Any] = field(default_factory=dict)
    cursor_columns: tuple[str, ...] = ()
    lookups: DerivedLookupCache = field(
        default_factory=DerivedLookupCache, compare=False, repr=False
    )

    def __post_init__(self) -> None:
        if self.limit < 1:
            msg = f"Expected positive integer for limit, got: {self.limit}"
            raise ValueError(msg)
        if not self.definition.keys:
            msg = "Keyset pagination requires at least one key column"
            raise OrderingDefinitionError(msg)

        columns = tuple(self.cursor_columns) or self.definition.keys
        for name in columns:
            if name not in self.definition.columns:
                raise OrderingDefinitionError("Unknown cursor column", column=name)
        missing = [key for key in self.definition.keys if key not in columns]
        if missing:
            raise OrderingDefinitionError("Cursor must contain every key column", column=missing[0])

        object.__setattr__(self, "cursor_columns", columns)
        object.__setattr__(self, "direction", Direction.parse(self.direction))
        object.__setattr__(self, "keyset", MappingProxyType(dict(self.keyset or {})))

    @property
    def is_definite(self) -> bool:
        """Every key column has a non-null value in the keyset."""
        return all(self.keyset.get(key) is not None for key in self.definition.keys)

    @property
    def cursor(self) -> list[Any] | None:
        """Keyset values in cursor column order, or None when incomplete."""
        if not self.is_definite:
            return None
        return [self.keyset.get(name) for name in self.cursor_columns]

    def cursor_predicates(
        self,
        ordering: OrderingSpec,
        table: FromClause,
        context: QueryContext | None = None,
        *,
        query: Select[Any] | None = None,
    ) -> tuple[Cursor, ColumnElement[bool]] | tuple[None, None]:
        return self.direction.cursor_predicates(
            self.keyset,
            ordering,
            table,
            context,
            query=query,
            cache=self.lookups,
        )

    def keyset_query(
        self,
        query: Select[Any],
        ordering: OrderingSpec,
        table: FromClause,
        context: QueryContext | None = None,
        *,
        limit: int | None = None,
    ) -> Select[Any]:
        """Base query past the boundary, in traversal order, limited.

        A derived-value lookup is referenced through a CTE that renders in
        the enclosing statement's ``WITH`` clause.
        """
        context = context or BLANKET_PERMISSION
        _, predicate = self.cursor_predicates(ordering, table, context, query=query)
        if predicate is not None:
            query = query.where(predicate)

        spec = self.direction.normalize(ordering)
        return (
            query.order_by(None)
            .order_by(*spec.to_clauses(table, context))
            .limit(limit if limit is not None else self.limit)
        )

    def select_keysets(
        self,
        query: Select[Any],
        ordering: OrderingSpec,
        table: FromClause,
        context: QueryContext | None = None,
        *,
        limit: int | None = None,
    ) -> Select[Any]:
        """Window query projecting the cursor columns.

        Fetch ``limit * pages + 1`` rows and wrap the result with
        ``keysets`` to find the boundaries of the following pages.
        """
        context = context or BLANKET_PERMISSION
        keyset_query = self.keyset_query(query, ordering, table, context, limit=limit)
        return keyset_query.with_only_columns(
            *self._projection(self.cursor_columns, table, context),
            maintain_column_froms=True,
        )

    def paginate(
        self,
        query: Select[Any],
        ordering: OrderingSpec,
        table: FromClause,
        context: QueryContext | None = None,
    ) -> Select[Any]:
        """Restrict ``query`` to the rows of the current page.

        The page's key values are selected by ``keyset_query`` into a derived
        table; ``query`` keeps its own projection and is filtered by an
        EXISTS join on the key columns. The result is not ordered.
        """
        context = context or BLANKET_PERMISSION
        keys = [name for name in self.cursor_columns if name in self.definition.keys]
        page = (
            self.keyset_query(query, ordering, table, context)
            .with_only_columns(*self._projection(keys, table, context), maintain_column_froms=True)
            .subquery(self.table_alias(table))
        )

        related = and_(
            *(
                self.definition.columns[name].attribute(name, table, context) == page.c[name]
                for name in keys
            )
        )
        exists_clause = exists(select(literal_column("1")).select_from(page).where(related))
        logger.debug(lambda: f"Paginating {table.name!r} {self.direction.name} keyset {dict(self.keyset)!r}")
        return query.where(exists_clause)

    def keysets(
        self,
        window: Sequence[Any],
        transform: Transform | None = None,
    ) -> BeforeKeysets | AfterKeysets:
        """Wrap a window fetched with ``select_keysets`` for page accounting."""
        return self.direction.keysets(dict(self.keyset), window, transform)

    def table_alias(self, table: FromClause) -> str:
        return safe_name(f"{table.name}_{'_'.join(self.cursor_columns)}")

    def first_page(self) -> KeysetPagination:
        return self._with(Direction.AFTER, {})

    def last_page(self) -> KeysetPagination:
        return self._with(Direction.BEFORE, {})

    def before_page(self, keyset: Mapping[str, Any] | None) -> KeysetPagination:
        return self._with(Direction.BEFORE, keyset or {})

    def after_page(self, keyset: Mapping[str, Any] | None) -> KeysetPagination:
        return self._with(Direction.AFTER, keyset or {})

    def limited_at(self, limit: int) -> KeysetPagination:
        return replace(self, limit=limit, lookups=DerivedLookupCache())

    def _with(self, direction: Direction, keyset: Mapping[str, Any]) -> KeysetPagination:
        return replace(self, direction=direction, keyset=keyset, lookups=DerivedLookupCache())

    def _projection(
        self,
        names: Sequence[str],
        table: FromClause,
        context: QueryContext,
    ) -> list[ColumnElement[Any]]:
        return [
            self.definition.columns[name].attribute(name, table, context).label(name)
            for name in names
        ]
