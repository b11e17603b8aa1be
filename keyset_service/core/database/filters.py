"""Composable transformations of a ``Select``.

A filter takes the caller's statement and returns a new one; it never
executes anything, so the result can still be extended or inspected.

Example:
    stmt = KeysetFilter(pagination, ordering, users).apply(select(users))
    rows = conn.execute(stmt).all()
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from sqlalchemy import Select


class StatementFilter(ABC):
    @abstractmethod
    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Return ``statement`` with this filter's clauses added."""


__all__ = ["StatementFilter"]
