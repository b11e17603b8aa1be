"""Per-column comparison tendency.

A column is matched by "strictly greater" (``GROWING``) or "strictly less"
(``FALLING``) when paging forward along it.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from sqlalchemy import and_, or_
from sqlalchemy.sql.elements import ColumnElement

from keyset_service.core.database.exceptions import KeysetError
from keyset_service.core.ordering.column import SortDirection


class Tendency(Enum):
    GROWING = "growing"
    FALLING = "falling"

    @classmethod
    def for_direction(cls, direction: SortDirection) -> Tendency:
        """Tendency of a column sorted ``direction`` in forward traversal."""
        match direction:
            case SortDirection.ASC:
                return cls.GROWING
            case SortDirection.DESC:
                return cls.FALLING
            case _:
                msg = f"Unexpected ordering: '{direction}'"
                raise KeysetError(msg)

    def comparison_predicate(
        self,
        attribute: ColumnElement[Any],
        value: Any,
    ) -> ColumnElement[bool]:
        match self:
            case Tendency.GROWING:
                return attribute > value
            case Tendency.FALLING:
                return attribute < value

    def non_nullable_predicate(
        self,
        attribute: ColumnElement[Any],
        value: Any,
        tail: ColumnElement[bool],
    ) -> ColumnElement[bool]:
        """One step of lexicographic comparison.

        Renders ``((attr = value AND tail) OR attr > value)`` for a growing
        column: either equal here and ahead on the remaining columns, or
        strictly ahead on this one.
        """
        if_equal = and_(attribute == value, tail).self_group()
        return or_(if_equal, self.comparison_predicate(attribute, value)).self_group()
