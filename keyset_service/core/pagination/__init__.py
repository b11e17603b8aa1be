"""Keyset (seek) pagination.

Usage:
    from keyset_service.core.pagination import KeysetFilter, KeysetPagination

    pagination = KeysetPagination(definition, limit=20, keyset={"id": 11})
    stmt = KeysetFilter(pagination, ordering, users).apply(select(users))

Navigation:
    # Windows past the page's edges, limit + 1 rows each
    before = pagination.before_page(first_row_keyset)
    after = pagination.after_page(last_row_keyset)
    rows_before = conn.execute(before.select_keysets(base, ordering, users, limit=21))
    rows_after = conn.execute(after.select_keysets(base, ordering, users, limit=21))

    info = PageInfo.from_keysets(
        before.keysets([dict(r._mapping) for r in rows_before]),
        after.keysets([dict(r._mapping) for r in rows_after]),
        limit=20,
    )
    # pagination.after_page(info.next_keyset) fetches the next page
"""

from __future__ import annotations

from keyset_service.core.pagination.codec import KeysetCodec, KeysetToken
from keyset_service.core.pagination.cursor import (
    Cursor,
    CursorBuilder,
    DerivedLookupCache,
    Literal,
    Selector,
    cte_name,
)
from keyset_service.core.pagination.direction import Direction, nullable_predicate
from keyset_service.core.pagination.filters import KeysetFilter
from keyset_service.core.pagination.keyset import KeysetPagination
from keyset_service.core.pagination.keysets import AfterKeysets, BeforeKeysets
from keyset_service.core.pagination.nulls import Nulls
from keyset_service.core.pagination.schemas import KeysetPaginationParams, PageInfo
from keyset_service.core.pagination.tendency import Tendency

__all__ = [
    "AfterKeysets",
    "BeforeKeysets",
    "Cursor",
    "CursorBuilder",
    "DerivedLookupCache",
    "Direction",
    "KeysetCodec",
    "KeysetFilter",
    "KeysetPagination",
    "KeysetPaginationParams",
    "KeysetToken",
    "Literal",
    "Nulls",
    "PageInfo",
    "Selector",
    "Tendency",
    "cte_name",
    "nullable_predicate",
]
