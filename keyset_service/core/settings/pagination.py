"""Pagination settings for keyset queries.

Centralized defaults for page size limits and the textual format of
ordering input, so API surfaces and query building stay consistent.

Environment variables use PAGINATION_ prefix.
Example: PAGINATION_DEFAULT_LIMIT=50, PAGINATION_MAX_LIMIT=100
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PaginationSettings(BaseSettings):
    """Pagination configuration settings.

    Attributes:
        default_limit: Default number of items per page when not specified.
        max_limit: Maximum allowed items per page (hard limit, input is clamped).
        column_delimiter: Separator between items of an ordering string.
        field_delimiter: Separator between column name and direction.
        identifier_max_length: Maximum length of generated SQL identifiers
            (CTE names, subquery aliases).

    Example:
        settings = PaginationSettings()
        limit = min(requested_limit, settings.max_limit)
    """

    default_limit: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Default page size when limit not specified",
    )
    max_limit: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Maximum allowed page size (hard limit)",
    )
    column_delimiter: str = Field(
        default="|",
        min_length=1,
        max_length=1,
        description="Separator between ordering items, e.g. 'name-asc|id-asc'",
    )
    field_delimiter: str = Field(
        default="-",
        min_length=1,
        max_length=1,
        description="Separator between column name and direction",
    )
    identifier_max_length: int = Field(
        default=64,
        ge=16,
        le=255,
        description="Generated SQL identifiers are truncated to this length",
    )

    model_config = SettingsConfigDict(
        env_prefix="PAGINATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    @model_validator(mode="after")
    def check_limits(self) -> PaginationSettings:
        """Ensure default limit fits under the hard limit and delimiters differ."""
        if self.default_limit > self.max_limit:
            msg = "default_limit must not exceed max_limit"
            raise ValueError(msg)
        if self.column_delimiter == self.field_delimiter:
            msg = "column_delimiter and field_delimiter must differ"
            raise ValueError(msg)
        return self
