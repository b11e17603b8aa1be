"""Pytest configuration and shared fixtures.

Organization:
    - Settings Fixtures: isolate cached settings between tests
    - Schema Fixtures: SQLAlchemy tables and ordering definitions
    - Database Fixtures: in-memory SQLite engine with sample rows
    - Utility Fixtures: SQL rendering helpers
"""

from __future__ import annotations

import os
from collections.abc import Callable, Generator
from typing import Any

import pytest
from sqlalchemy import Integer, MetaData, String, Table, create_engine
from sqlalchemy import Column as SAColumn
from sqlalchemy.engine import Engine

from keyset_service.core.ordering import OrderingDefinition, OrderingDefinitionBuilder
from keyset_service.core.settings import clear_all_caches

# Keep developer environment out of settings under test
for _key in [key for key in os.environ if key.startswith(("PAGINATION_", "LOG_"))]:
    del os.environ[_key]


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _clear_settings_caches() -> Generator[None]:
    """Reload settings for every test so env overrides do not leak."""
    clear_all_caches()
    yield
    clear_all_caches()


# ============================================================================
# Schema Fixtures
# ============================================================================


@pytest.fixture
def metadata() -> MetaData:
    return MetaData()


@pytest.fixture
def users(metadata: MetaData) -> Table:
    """Users table used by SQL rendering tests."""
    return Table(
        "users",
        metadata,
        SAColumn("id", Integer, primary_key=True),
        SAColumn("email", String(100), nullable=False),
        SAColumn("name", String(100), nullable=False),
        SAColumn("hits", Integer, nullable=False),
        SAColumn("ranking", Integer, nullable=True),
    )


@pytest.fixture
def user_ordering() -> OrderingDefinition:
    """Ordering with a nullable column and a single key.

    Columns: email asc, name asc, hits desc, ranking desc (nulls last),
    id asc (key).
    """
    return (
        OrderingDefinitionBuilder()
        .column("email", "asc")
        .column("name", "asc")
        .column("hits", "desc")
        .column("ranking", "desc", nulls="last")
        .key("id", "asc")
        .default(("email", "asc"), ("name", "asc"))
        .build()
    )


@pytest.fixture
def plain_ordering() -> OrderingDefinition:
    """Ordering without required columns."""
    return (
        OrderingDefinitionBuilder()
        .column("email", "asc")
        .column("name", "asc")
        .column("hits", "desc")
        .build()
    )


# ============================================================================
# Database Fixtures
# ============================================================================

ITEM_ROWS: list[dict[str, Any]] = [
    {"id": 1, "score": 3, "bucket": 1},
    {"id": 2, "score": None, "bucket": 2},
    {"id": 3, "score": 1, "bucket": 1},
    {"id": 4, "score": 3, "bucket": 2},
    {"id": 5, "score": None, "bucket": 1},
    {"id": 6, "score": 2, "bucket": 2},
    {"id": 7, "score": 1, "bucket": 1},
    {"id": 8, "score": 3, "bucket": 2},
    {"id": 9, "score": None, "bucket": 1},
    {"id": 10, "score": 2, "bucket": 2},
    {"id": 11, "score": 5, "bucket": 1},
    {"id": 12, "score": 1, "bucket": 2},
]


@pytest.fixture
def items(metadata: MetaData) -> Table:
    return Table(
        "items",
        metadata,
        SAColumn("id", Integer, primary_key=True),
        SAColumn("score", Integer, nullable=True),
        SAColumn("bucket", Integer, nullable=False),
    )


@pytest.fixture
def item_rows() -> list[dict[str, Any]]:
    return [dict(row) for row in ITEM_ROWS]


@pytest.fixture
def engine(metadata: MetaData, items: Table, item_rows: list[dict[str, Any]]) -> Generator[Engine]:
    """In-memory SQLite database holding ``ITEM_ROWS``."""
    engine = create_engine("sqlite://")
    metadata.create_all(engine)
    with engine.begin() as conn:
        conn.execute(items.insert(), item_rows)
    yield engine
    engine.dispose()


# ============================================================================
# Utility Fixtures
# ============================================================================


def render(element: Any) -> str:
    """Compile an expression with inlined literals, whitespace collapsed."""
    compiled = element.compile(compile_kwargs={"literal_binds": True})
    return " ".join(str(compiled).split())


@pytest.fixture
def sql() -> Callable[[Any], str]:
    return render
