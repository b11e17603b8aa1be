"""Null-aware predicate strategies.

``FIRST`` places NULLs ahead of every value in traversal order, ``LAST``
behind them.
Which one applies depends on the column's null policy and on whether the
ordering is traversed backward.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from sqlalchemy import and_, or_
from sqlalchemy.sql.elements import ColumnElement

from keyset_service.core.database.exceptions import KeysetError
from keyset_service.core.ordering.column import NullPolicy
from keyset_service.core.pagination.tendency import Tendency


class Nulls(Enum):
    FIRST = "first"
    LAST = "last"

    @classmethod
    def for_policy(cls, policy: NullPolicy, *, inverted: bool) -> Nulls:
        """Pick the strategy for ``policy``, mirrored for inverted orderings."""
        match (policy, inverted):
            case (NullPolicy.FIRST, False) | (NullPolicy.LAST, True):
                return cls.FIRST
            case (NullPolicy.LAST, False) | (NullPolicy.FIRST, True):
                return cls.LAST
            case _:
                msg = f"Unexpected nulls strategy: '{policy}'"
                raise KeysetError(msg)

    def if_null_predicate(
        self,
        attribute: ColumnElement[Any],
        tail: ColumnElement[bool],
    ) -> ColumnElement[bool]:
        """Rows after a cursor whose value in this column is NULL."""
        is_null_and_tail = and_(attribute.is_(None), tail).self_group()
        match self:
            case Nulls.FIRST:
                return or_(is_null_and_tail, attribute.is_not(None)).self_group()
            case Nulls.LAST:
                return is_null_and_tail

    def if_not_null_predicate(
        self,
        tendency: Tendency,
        attribute: ColumnElement[Any],
        value: Any,
        tail: ColumnElement[bool],
    ) -> ColumnElement[bool]:
        """Rows after a cursor whose value in this column is ``value``."""
        predicate = tendency.non_nullable_predicate(attribute, value, tail)
        match self:
            case Nulls.FIRST:
                return predicate
            case Nulls.LAST:
                return or_(predicate, attribute.is_(None)).self_group()
