"""Unit tests for KeysetPagination statement building and navigation."""
from __future__ import annotations

import pytest
from sqlalchemy import select

from keyset_service.core.database.exceptions import KeysetError, OrderingDefinitionError
from keyset_service.core.pagination import (
    AfterKeysets,
    BeforeKeysets,
    Direction,
    KeysetPagination,
)


@pytest.fixture
def pagination(user_ordering):
    return KeysetPagination(user_ordering, limit=20, keyset={"id": 11})


@pytest.mark.unit
class TestConstruction:
    def test_defaults(self, user_ordering):
        pagination = KeysetPagination(user_ordering, limit=10)

        assert pagination.direction is Direction.AFTER
        assert dict(pagination.keyset) == {}
        assert pagination.cursor_columns == ("id",)

    def test_direction_aliases(self, user_ordering):
        pagination = KeysetPagination(user_ordering, limit=10, direction="before")

        assert pagination.direction is Direction.BEFORE

    def test_unknown_direction(self, user_ordering):
        with pytest.raises(KeysetError, match="Unexpected direction"):
            KeysetPagination(user_ordering, limit=10, direction="up")

    @pytest.mark.parametrize("limit", [0, -5])
    def test_limit_must_be_positive(self, user_ordering, limit):
        with pytest.raises(ValueError, match="positive integer for limit"):
            KeysetPagination(user_ordering, limit=limit)

    def test_definition_needs_key(self, plain_ordering):
        with pytest.raises(OrderingDefinitionError, match="key column"):
            KeysetPagination(plain_ordering, limit=10)

    def test_cursor_columns_must_include_keys(self, user_ordering):
        with pytest.raises(OrderingDefinitionError, match="every key column") as exc_info:
            KeysetPagination(user_ordering, limit=10, cursor_columns=("email",))

        assert exc_info.value.details == {"column": "id"}

    def test_unknown_cursor_column(self, user_ordering):
        with pytest.raises(OrderingDefinitionError, match="Unknown cursor column"):
            KeysetPagination(user_ordering, limit=10, cursor_columns=("id", "age"))

    def test_keyset_is_read_only(self, pagination):
        with pytest.raises(TypeError):
            pagination.keyset["id"] = 3


@pytest.mark.unit
class TestCursor:
    def test_definite_keyset(self, user_ordering):
        pagination = KeysetPagination(
            user_ordering,
            limit=10,
            keyset={"id": 5, "email": "a@b.c"},
            cursor_columns=("email", "id"),
        )

        assert pagination.is_definite
        assert pagination.cursor == ["a@b.c", 5]

    @pytest.mark.parametrize("keyset", [{}, {"email": "a@b.c"}, {"id": None}])
    def test_indefinite_keyset(self, user_ordering, keyset):
        pagination = KeysetPagination(user_ordering, limit=10, keyset=keyset)

        assert not pagination.is_definite
        assert pagination.cursor is None


@pytest.mark.unit
class TestNavigation:
    def test_first_page(self, pagination):
        first = pagination.first_page()

        assert first.direction is Direction.AFTER
        assert dict(first.keyset) == {}
        assert first.limit == 20

    def test_last_page(self, pagination):
        last = pagination.last_page()

        assert last.direction is Direction.BEFORE
        assert dict(last.keyset) == {}

    def test_before_page(self, pagination):
        before = pagination.before_page({"id": 3})

        assert before.direction is Direction.BEFORE
        assert dict(before.keyset) == {"id": 3}

    def test_after_page_without_keyset(self, pagination):
        after = pagination.after_page(None)

        assert after.direction is Direction.AFTER
        assert dict(after.keyset) == {}

    def test_limited_at(self, pagination):
        limited = pagination.limited_at(5)

        assert limited.limit == 5
        assert dict(limited.keyset) == {"id": 11}

    def test_navigation_does_not_share_lookups(self, pagination):
        assert pagination.after_page({"id": 1}).lookups is not pagination.lookups
        assert pagination.limited_at(3).lookups is not pagination.lookups

    def test_keysets_window(self, pagination):
        after = pagination.keysets([{"id": 12}])
        before = pagination.before_page({"id": 11}).keysets([{"id": 10}])

        assert isinstance(after, AfterKeysets)
        assert after.last == {"id": 11}
        assert isinstance(before, BeforeKeysets)

    def test_table_alias(self, user_ordering, users):
        pagination = KeysetPagination(user_ordering, limit=5, cursor_columns=("ranking", "id"))

        assert pagination.table_alias(users) == "users_ranking_id"


@pytest.mark.unit
class TestStatements:
    def test_keyset_query(self, pagination, user_ordering, users, sql):
        spec = user_ordering.canonicalize("id-asc")

        rendered = sql(pagination.keyset_query(select(users.c.id), spec, users))

        assert rendered == (
            "SELECT users.id FROM users WHERE (users.id > 11) ORDER BY users.id ASC LIMIT 20"
        )

    def test_keyset_query_before_uses_inverted_order(self, pagination, user_ordering, users, sql):
        spec = user_ordering.canonicalize("hits-desc")
        before = pagination.before_page({"id": 11, "hits": 4})

        rendered = sql(before.keyset_query(select(users.c.id), spec, users, limit=7))

        assert rendered.endswith("ORDER BY users.hits ASC, users.id DESC LIMIT 7")
        assert "((users.hits = 4 AND users.id < 11) OR users.hits > 4)" in rendered

    def test_keyset_query_replaces_base_ordering(self, pagination, user_ordering, users, sql):
        spec = user_ordering.canonicalize("id-asc")
        base = select(users.c.id).order_by(users.c.email)

        rendered = sql(pagination.keyset_query(base, spec, users))

        assert "users.email" not in rendered

    def test_first_page_query_has_no_boundary(self, pagination, user_ordering, users, sql):
        spec = user_ordering.canonicalize("id-asc")

        rendered = sql(pagination.first_page().keyset_query(select(users.c.id), spec, users))

        assert rendered == "SELECT users.id FROM users ORDER BY users.id ASC LIMIT 20"

    def test_select_keysets(self, user_ordering, users, sql):
        pagination = KeysetPagination(
            user_ordering, limit=3, keyset={"id": 11}, cursor_columns=("ranking", "id")
        )
        spec = user_ordering.canonicalize("ranking-desc")

        rendered = sql(pagination.select_keysets(select(users), spec, users, limit=4))

        assert rendered.startswith(
            "WITH ranking_cte AS (SELECT users.ranking AS ranking FROM users WHERE users.id = 11) "
            "SELECT users.ranking AS ranking, users.id AS id FROM users WHERE"
        )
        assert rendered.endswith("users.ranking DESC, users.id ASC LIMIT 4")

    def test_paginate(self, pagination, user_ordering, users, sql):
        spec = user_ordering.canonicalize("id-asc")

        rendered = sql(pagination.paginate(select(users), spec, users))

        assert rendered.startswith("SELECT users.id, users.email")
        assert (
            "WHERE EXISTS (SELECT 1 FROM (SELECT users.id AS id FROM users "
            "WHERE (users.id > 11) ORDER BY users.id ASC LIMIT 20) AS users_id "
            "WHERE users.id = users_id.id)"
        ) in rendered

    def test_paginate_hoists_lookup(self, pagination, user_ordering, users, sql):
        spec = user_ordering.canonicalize("ranking-desc|hits-asc")

        rendered = sql(pagination.paginate(select(users), spec, users))

        assert rendered.startswith(
            "WITH hits_ranking_cte AS (SELECT users.ranking AS ranking, users.hits AS hits "
            "FROM users WHERE users.id = 11) SELECT"
        )
        assert rendered.count("WITH") == 1
