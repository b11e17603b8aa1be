"""Keyset filter for SQLAlchemy queries.

For ORDER BY ranking DESC NULLS LAST, id ASC with cursor ``{"id": 11}``
the filter restricts the statement to the page's rows:

    WITH ranking_cte AS (SELECT users.ranking AS ranking FROM users WHERE users.id = 11)
    SELECT ... FROM users WHERE EXISTS (
        SELECT 1 FROM (SELECT users.id AS id FROM users WHERE <boundary>
                       ORDER BY ... LIMIT 20) AS users_id
        WHERE users.id = users_id.id)
    ORDER BY CASE WHEN (users.ranking IS NULL) THEN 1 ELSE 0 END, users.ranking DESC, users.id ASC
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import Select

from keyset_service.core.database.filters import StatementFilter
from keyset_service.core.ordering.context import BLANKET_PERMISSION, QueryContext
from keyset_service.infra.logging import log_context

if TYPE_CHECKING:
    from sqlalchemy.sql.expression import FromClause

    from keyset_service.core.ordering.spec import OrderingSpec
    from keyset_service.core.pagination.keyset import KeysetPagination


class KeysetFilter(StatementFilter):
    """Apply keyset pagination to a SQLAlchemy query.

    The statement is restricted to the current page and ordered in display
    order, so pages fetched backward come out in the same order as pages
    fetched forward.

    Example:
        stmt = select(users).where(users.c.active.is_(True))
        stmt = KeysetFilter(pagination, ordering, users).apply(stmt)

    Attributes:
        pagination: Request pagination state
        ordering: Ordering as the user chose it
        table: Table the ordering columns resolve against
        context: Visibility and column expression parameters
    """

    def __init__(
        self,
        pagination: KeysetPagination,
        ordering: OrderingSpec,
        table: FromClause,
        context: QueryContext | None = None,
    ) -> None:
        self.pagination = pagination
        self.ordering = ordering
        self.table = table
        self.context = context or BLANKET_PERMISSION

    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Restrict to the current page and order for display."""
        with log_context(table=getattr(self.table, "name", None), ordering=self.ordering.marshal()):
            paginated = self.pagination.paginate(statement, self.ordering, self.table, self.context)
        return paginated.order_by(None).order_by(*self.ordering.to_clauses(self.table, self.context))


__all__ = ["KeysetFilter"]
