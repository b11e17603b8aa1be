"""Tests for the keyset pagination FastAPI dependencies."""

from datetime import datetime
from typing import Annotated

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from keyset_service.app.exception_handlers import configure_exception_handlers
from keyset_service.core.dependencies import (
    KeysetParams,
    get_keyset_params,
    ordering_dependency,
    pagination_dependency,
)
from keyset_service.core.exceptions import BadRequestException
from keyset_service.core.ordering import OrderingDefinitionBuilder, OrderingSpec
from keyset_service.core.pagination import (
    Direction,
    KeysetCodec,
    KeysetPagination,
    KeysetToken,
)
from keyset_service.core.settings import clear_all_caches


@pytest.fixture
def client(user_ordering):
    app = FastAPI()
    configure_exception_handlers(app)

    @app.get("/users")
    def list_users(
        ordering: Annotated[OrderingSpec, Depends(ordering_dependency(user_ordering))],
        pagination: Annotated[KeysetPagination, Depends(pagination_dependency(user_ordering))],
    ):
        return {
            "order": ordering.marshal(),
            "limit": pagination.limit,
            "direction": pagination.direction.value,
            "keyset": dict(pagination.keyset),
        }

    @app.get("/params")
    def params(keyset_params: KeysetParams):
        return keyset_params.model_dump(mode="json")

    return TestClient(app)


def token(**kwargs) -> str:
    return KeysetCodec.encode(KeysetToken(**kwargs))


@pytest.mark.unit
class TestOrderingDependency:
    def test_default_ordering(self, client):
        response = client.get("/users")

        assert response.status_code == 200
        assert response.json()["order"] == "email-asc|name-asc|id-asc"

    def test_ordering_parameter(self, client):
        response = client.get("/users", params={"order": "ranking-desc"})

        assert response.json()["order"] == "ranking-desc|id-asc"

    def test_unknown_column(self, client):
        response = client.get("/users", params={"order": "rank-asc"})

        assert response.status_code == 400
        body = response.json()
        assert body["type"] == "invalid-ordering"
        assert body["title"] == "Bad Request"
        assert body["detail"] == "Unknown ordering column: 'rank'"
        assert body["order"] == "rank-asc"
        assert body["instance"].endswith("/users?order=rank-asc")

    def test_invalid_direction(self, client):
        response = client.get("/users", params={"order": "email-up"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid ordering direction: 'up'"


@pytest.mark.unit
class TestKeysetParams:
    def test_defaults(self, client):
        response = client.get("/params")

        assert response.json() == {"limit": 50, "direction": "aft", "keyset": {}}

    def test_default_limit_from_settings(self, client, monkeypatch):
        monkeypatch.setenv("PAGINATION_DEFAULT_LIMIT", "10")
        clear_all_caches()

        assert client.get("/params").json()["limit"] == 10

    @pytest.mark.parametrize(("limit", "expected"), [(500, 100), (0, 1), (-3, 1), (20, 20)])
    def test_limit_clamped(self, client, limit, expected):
        assert client.get("/params", params={"limit": limit}).json()["limit"] == expected

    def test_direction_alias(self, client):
        assert client.get("/params", params={"direction": "before"}).json()["direction"] == "bfr"

    def test_invalid_direction(self, client):
        response = client.get("/params", params={"direction": "sideways"})

        assert response.status_code == 422
        body = response.json()
        assert body["type"] == "validation-error"
        assert body["errors"][0]["field"] == "query.direction"

    def test_non_integer_limit(self, client):
        response = client.get("/params", params={"limit": "many"})

        assert response.status_code == 422

    def test_values_from_cursor(self, client):
        cursor = token(keyset={"id": 5}, direction="bfr", limit=7)

        response = client.get("/params", params={"cursor": cursor})

        assert response.json() == {"limit": 7, "direction": "bfr", "keyset": {"id": 5}}

    def test_explicit_values_win_over_cursor(self, client):
        cursor = token(keyset={"id": 5}, direction="bfr", limit=7)

        response = client.get("/params", params={"cursor": cursor, "limit": 3, "direction": "aft"})

        assert response.json() == {"limit": 3, "direction": "aft", "keyset": {"id": 5}}

    def test_cursor_limit_clamped(self, client):
        cursor = token(keyset={"id": 5}, limit=1000)

        assert client.get("/params", params={"cursor": cursor}).json()["limit"] == 100

    def test_invalid_cursor(self, client):
        response = client.get("/params", params={"cursor": "garbage"})

        assert response.status_code == 400
        body = response.json()
        assert body["type"] == "invalid-cursor"
        assert body["cursor"] == "garbage"
        assert body["detail"].startswith("Invalid keyset token")

    def test_direct_call(self):
        params = get_keyset_params(limit=None, direction=None, cursor=None)

        assert params.limit == 50
        assert params.direction is Direction.AFTER

    def test_direct_call_invalid_cursor(self):
        with pytest.raises(BadRequestException) as exc_info:
            get_keyset_params(limit=None, direction=None, cursor="!!")

        assert exc_info.value.type == "invalid-cursor"


@pytest.mark.unit
class TestPaginationDependency:
    def test_first_page(self, client):
        response = client.get("/users")

        assert response.json()["keyset"] == {}
        assert response.json()["direction"] == "aft"

    def test_keyset_from_cursor(self, client):
        cursor = token(keyset={"id": 5, "ranking": None, "bogus": 1}, direction="bfr")

        response = client.get("/users", params={"cursor": cursor, "limit": 4})

        assert response.json() == {
            "order": "email-asc|name-asc|id-asc",
            "limit": 4,
            "direction": "bfr",
            "keyset": {"id": 5, "ranking": None},
        }


@pytest.fixture
def event_client():
    definition = (
        OrderingDefinitionBuilder()
        .column("created_at", "desc", value_type=datetime)
        .key("id", "asc", value_type=int)
        .default(("created_at", "desc"))
        .build()
    )
    app = FastAPI()
    configure_exception_handlers(app)

    @app.get("/events")
    def list_events(
        pagination: Annotated[KeysetPagination, Depends(pagination_dependency(definition))],
    ):
        return {name: type(value).__name__ for name, value in pagination.keyset.items()}

    return TestClient(app)


@pytest.mark.unit
class TestTypedKeysetValues:
    def test_values_typed_through_columns(self, event_client):
        cursor = token(keyset={"created_at": datetime(2025, 1, 2, 3, 4, 5), "id": 5})

        response = event_client.get("/events", params={"cursor": cursor})

        assert response.json() == {"created_at": "datetime", "id": "int"}

    def test_value_of_wrong_type(self, event_client):
        cursor = token(keyset={"created_at": "yesterday", "id": 5})

        response = event_client.get("/events", params={"cursor": cursor})

        assert response.status_code == 400
        body = response.json()
        assert body["type"] == "invalid-cursor"
        assert body["detail"] == "Invalid keyset value for 'created_at'"
        assert body["column"] == "created_at"
