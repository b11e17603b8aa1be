"""Keyset window accounting.

A window is the list of boundary keysets fetched past the current cursor
in traversal order, typically ``limit * n + 1`` of them. ``page`` maps a
page shift to the keyset that starts that page:

- ``None``: the page does not exist.
- ``{}``: the page exists but starts at the beginning of the sequence, so
  it needs no keyset (``BeforeKeysets`` only).
- anything else: the boundary keyset, passed through ``transform``.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

type Transform = Callable[[Any], Any]


class AbstractKeysets:
    def __init__(self, keysets: Sequence[Any], transform: Transform | None = None) -> None:
        self.keysets = list(keysets)
        self._transform = transform

    def __len__(self) -> int:
        return len(self.keysets)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.keysets!r})"

    def transform(self, raw: Any) -> Any:
        if raw is None or self._transform is None:
            return raw
        return self._transform(raw)

    @staticmethod
    def _check_limit(limit: int) -> None:
        if limit < 1:
            msg = f"Expected positive integer for limit, got: {limit}"
            raise ValueError(msg)


class BeforeKeysets(AbstractKeysets):
    """Window fetched backward from the current cursor."""

    def page(self, delta: int, limit: int) -> Any:
        self._check_limit(limit)
        if delta < 0:
            msg = f"Expected non-negative integer for delta, got: {delta}"
            raise ValueError(msg)

        if delta == 0:
            return self.transform(self.keysets[0] if self.keysets else None)

        shift = delta * limit
        diff = len(self.keysets) - shift
        if diff > 0:
            return self.transform(self.keysets[shift])
        if abs(diff) < limit:
            return {}
        return None


class AfterKeysets(AbstractKeysets):
    """Window fetched forward from the current cursor.

    Attributes:
        last: Keyset the window was fetched after. It starts the next page.
    """

    def __init__(
        self,
        last: Any,
        keysets: Sequence[Any],
        transform: Transform | None = None,
    ) -> None:
        self.last = last
        super().__init__(keysets, transform)

    def page(self, delta: int, limit: int) -> Any:
        self._check_limit(limit)
        if delta < 1:
            msg = f"Expected positive integer for delta, got: {delta}"
            raise ValueError(msg)
        if not self.keysets:
            return None

        shift = (delta - 1) * limit
        if shift == 0:
            return self.last

        if len(self.keysets) - shift < 1:
            return None
        return self.transform(self.keysets[shift - 1])
