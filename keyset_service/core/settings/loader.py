"""Cached settings accessors.

Each accessor builds its settings object on first call (reading the
environment and ``.env``) and returns the same frozen instance afterwards.
Tests that change the environment call ``clear_all_caches()`` first.

Example:
    from keyset_service.core.settings import get_pagination_settings

    limit = get_pagination_settings().default_limit
"""

from __future__ import annotations

from functools import lru_cache

from .logs import LoggingSettings
from .pagination import PaginationSettings


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    return LoggingSettings()


@lru_cache(maxsize=1)
def get_pagination_settings() -> PaginationSettings:
    """Limits, token size and CTE naming used by the pagination engine."""
    return PaginationSettings()


_LOADERS = (get_logging_settings, get_pagination_settings)


def clear_all_caches() -> None:
    """Forget every cached settings instance."""
    for loader in _LOADERS:
        loader.cache_clear()
