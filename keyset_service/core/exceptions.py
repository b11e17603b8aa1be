"""HTTP-facing exception classes.

Errors raised while building queries live in
``keyset_service.core.database.exceptions``. The classes here are what the
FastAPI seam raises; ``configure_exception_handlers`` renders them as
RFC 7807 problem details.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any


class AppException(Exception):
    """Error that maps onto one problem details response.

    Attributes:
        status_code: HTTP status of the response.
        detail: Message for this occurrence.
        type: Problem type identifier, e.g. ``"invalid-cursor"``.
        title: Summary of the problem type; the status phrase by default.
        instance: URI of the occurrence; the request URL when omitted.
        extra: Members merged into the response body.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        type: str = "about:blank",
        title: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        self.detail = detail
        self.type = type
        self.title = title or self._default_title(status_code)
        self.instance = instance
        self.extra = extra or {}
        super().__init__(detail)

    @staticmethod
    def _default_title(status_code: int) -> str:
        try:
            return HTTPStatus(status_code).phrase
        except ValueError:
            return "Error"


class BadRequestException(AppException):
    """Client sent pagination or ordering input that cannot be used.

    Example:
        raise BadRequestException(
            detail="Invalid keyset token: expected an object",
            type="invalid-cursor",
            extra={"cursor": cursor},
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "bad-request",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=400,
            detail=detail,
            type=type,
            instance=instance,
            extra=extra,
        )


__all__ = ["AppException", "BadRequestException"]
