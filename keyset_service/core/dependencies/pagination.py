"""Keyset pagination dependencies for FastAPI routes.

Query parameters:
    limit: Page size, clamped to ``[1, max_limit]`` from settings
    direction: ``aft``/``after`` or ``bfr``/``before``
    cursor: Opaque keyset token from a previous response
    order: Ordering string, e.g. ``ranking-desc|email-asc``

Usage:
    from keyset_service.core.dependencies.pagination import (
        KeysetParams,
        ordering_dependency,
        pagination_dependency,
    )

    UserOrdering = Annotated[OrderingSpec, Depends(ordering_dependency(user_ordering))]
    UserPagination = Annotated[KeysetPagination, Depends(pagination_dependency(user_ordering))]

    @router.get("/users")
    async def list_users(ordering: UserOrdering, pagination: UserPagination):
        stmt = KeysetFilter(pagination, ordering, users).apply(select(users))
        ...
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Query
from pydantic import ValidationError

from keyset_service.core.database.exceptions import InvalidOrderingError
from keyset_service.core.exceptions import BadRequestException
from keyset_service.core.ordering.definition import OrderingDefinition
from keyset_service.core.ordering.spec import OrderingSpec
from keyset_service.core.pagination.codec import KeysetCodec
from keyset_service.core.pagination.direction import Direction
from keyset_service.core.pagination.keyset import KeysetPagination
from keyset_service.core.pagination.schemas import KeysetPaginationParams
from keyset_service.core.settings import get_pagination_settings

_DIRECTION_PATTERN = r"^(aft|after|bfr|before)$"


def get_keyset_params(
    limit: Annotated[
        int | None,
        Query(description="Maximum number of items to return (clamped to the configured maximum)"),
    ] = None,
    direction: Annotated[
        str | None,
        Query(pattern=_DIRECTION_PATTERN, description="Traversal direction: aft or bfr"),
    ] = None,
    cursor: Annotated[
        str | None,
        Query(max_length=2000, description="Keyset token from a previous page"),
    ] = None,
) -> KeysetPaginationParams:
    """Get keyset pagination parameters.

    Explicit ``limit`` and ``direction`` win over the values carried by the
    cursor token; missing values fall back to the token, then to settings.

    Raises:
        BadRequestException: If the cursor token cannot be decoded.
    """
    settings = get_pagination_settings()

    keyset: dict = {}
    token_direction = Direction.AFTER
    token_limit = None
    if cursor:
        try:
            token = KeysetCodec.decode(cursor)
        except ValueError as e:
            raise BadRequestException(
                detail=str(e),
                type="invalid-cursor",
                extra={"cursor": cursor},
            ) from e
        keyset = token.keyset
        token_direction = token.direction
        token_limit = token.limit

    requested = limit if limit is not None else token_limit or settings.default_limit
    effective_limit = max(1, min(requested, settings.max_limit))
    effective_direction = Direction.parse(direction) if direction else token_direction

    return KeysetPaginationParams(
        limit=effective_limit,
        direction=effective_direction,
        keyset=keyset,
    )


KeysetParams = Annotated[KeysetPaginationParams, Depends(get_keyset_params)]


def ordering_dependency(definition: OrderingDefinition) -> Callable[..., OrderingSpec]:
    """Create a dependency that canonicalizes the ``order`` query parameter.

    Args:
        definition: Ordering definition of the resource.

    Returns:
        Dependency returning the canonical ``OrderingSpec``; the definition's
        default when ``order`` is absent.
    """

    def get_ordering(
        order: Annotated[
            str | None,
            Query(max_length=500, description="Ordering, e.g. 'name-asc|id-desc'"),
        ] = None,
    ) -> OrderingSpec:
        if order is None:
            return definition.default
        try:
            return definition.canonicalize(order)
        except InvalidOrderingError as e:
            raise BadRequestException(
                detail=e.message,
                type="invalid-ordering",
                extra={"order": order},
            ) from e

    return get_ordering


def pagination_dependency(definition: OrderingDefinition) -> Callable[..., KeysetPagination]:
    """Create a dependency building ``KeysetPagination`` for a resource.

    Keyset entries that are not ordering columns of ``definition`` are
    dropped. The rest are validated into their column's ``value_type``.

    Raises:
        BadRequestException: If a keyset value does not fit its column.
    """

    def get_pagination(params: KeysetParams) -> KeysetPagination:
        keyset = {}
        for name, value in params.keyset.items():
            column = definition.columns.get(name)
            if column is None:
                continue
            try:
                keyset[name] = column.parse_value(value)
            except ValidationError as e:
                raise BadRequestException(
                    detail=f"Invalid keyset value for '{name}'",
                    type="invalid-cursor",
                    extra={"column": name},
                ) from e
        return KeysetPagination(
            definition,
            limit=params.limit,
            direction=params.direction,
            keyset=keyset,
        )

    return get_pagination


__all__ = [
    "KeysetParams",
    "get_keyset_params",
    "ordering_dependency",
    "pagination_dependency",
]
