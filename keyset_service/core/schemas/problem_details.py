"""Error response bodies (RFC 7807, ``application/problem+json``).

https://datatracker.ietf.org/doc/html/rfc7807
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field

ShortText = Annotated[str, Field(min_length=1, max_length=200)]


class ProblemDetails(BaseModel):
    """Body of a pagination or ordering error response.

    ``type`` is a short identifier rather than a full URI, e.g.
    ``"invalid-cursor"`` for an undecodable keyset token or
    ``"invalid-ordering"`` for an unknown ordering column.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "type": "invalid-ordering",
                "title": "Bad Request",
                "status": 400,
                "detail": "Unknown ordering column: 'rank'",
                "instance": "/api/v1/users?ordering=rank-asc",
            }
        },
    )

    type: ShortText = Field(default="about:blank", description="Problem type identifier")
    title: ShortText = Field(description="Summary of the problem type")
    status: int = Field(ge=100, le=599, description="HTTP status code")
    detail: str | None = Field(default=None, max_length=2000, description="This occurrence")
    instance: str | None = Field(default=None, max_length=500, description="URI of the occurrence")


class FieldError(BaseModel):
    field: str = Field(description="Dotted location, e.g. 'query.limit'")
    message: str
    type: str
    value: Any = None


class ValidationProblemDetails(ProblemDetails):
    """Problem details with one entry per rejected field."""

    errors: list[FieldError] = Field(default_factory=list)
