"""Pagination request and response schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from keyset_service.core.pagination.direction import Direction
from keyset_service.core.pagination.keysets import AfterKeysets, BeforeKeysets


class KeysetPaginationParams(BaseModel):
    """Validated keyset pagination input.

    Attributes:
        limit: Page size, already clamped to the configured bounds
        direction: Traversal direction relative to the keyset
        keyset: Boundary values by column name (empty for the first page)
    """

    model_config = ConfigDict(frozen=True)

    limit: int = Field(ge=1, description="Page size")
    direction: Direction = Field(default=Direction.AFTER, description="Traversal direction")
    keyset: dict[str, Any] = Field(default_factory=dict, description="Boundary values")


class PageInfo(BaseModel):
    """Navigation metadata derived from the keyset windows around a page.

    Attributes:
        has_previous_page: Whether rows exist before the current page
        has_next_page: Whether rows exist after the current page
        previous_keyset: Keyset to page after to reach the previous page.
            Empty when the previous page is the first one.
        next_keyset: Keyset to page after to reach the next page
    """

    has_previous_page: bool = Field(description="Whether previous items exist")
    has_next_page: bool = Field(description="Whether more items exist")
    previous_keyset: dict[str, Any] | None = Field(
        default=None,
        description="Boundary keyset of the previous page",
    )
    next_keyset: dict[str, Any] | None = Field(
        default=None,
        description="Boundary keyset of the next page",
    )

    @classmethod
    def from_keysets(
        cls,
        before: BeforeKeysets,
        after: AfterKeysets,
        limit: int,
    ) -> PageInfo:
        """Build navigation metadata from the windows around a page.

        Args:
            before: Window fetched backward from the page's first row,
                ``limit + 1`` rows
            after: Window fetched forward from the page's last row, with
                that row's keyset as ``last``
            limit: Page size
        """
        previous_keyset = before.page(1, limit)
        next_keyset = after.page(1, limit)
        return cls(
            has_previous_page=previous_keyset is not None,
            has_next_page=next_keyset is not None,
            previous_keyset=previous_keyset,
            next_keyset=next_keyset,
        )


__all__ = ["KeysetPaginationParams", "PageInfo"]
