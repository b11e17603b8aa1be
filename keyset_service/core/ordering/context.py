"""Query building context."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True)
class QueryContext:
    """Visibility and parameters for one query build.

    Attributes:
        permitted: Column names the caller may order by. ``None`` permits
            every column. Required columns are kept regardless.
        params: Free-form values handed to callable column expressions.
    """

    permitted: frozenset[str] | None = None
    params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.permitted is not None and not isinstance(self.permitted, frozenset):
            object.__setattr__(self, "permitted", frozenset(self.permitted))
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    @classmethod
    def permit(cls, names: Iterable[str], **params: Any) -> QueryContext:
        """Create a context restricted to the given column names."""
        return cls(permitted=frozenset(names), params=params)

    def name_permitted(self, name: str) -> bool:
        return self.permitted is None or name in self.permitted

    def __getitem__(self, key: str) -> Any:
        return self.params[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.params.get(key, default)


BLANKET_PERMISSION = QueryContext()
