"""Problem details (RFC 7807) responses for pagination errors.

``AppException`` carries its own status and type. Query building errors
that escape a route are mapped here: bad ordering input becomes a 400,
anything else from ``KeysetError`` is a server-side defect and a 500.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from keyset_service.core.database.exceptions import InvalidOrderingError, KeysetError
from keyset_service.core.exceptions import AppException
from keyset_service.core.schemas.problem_details import (
    FieldError,
    ProblemDetails,
    ValidationProblemDetails,
)

logger = logging.getLogger(__name__)

PROBLEM_JSON = "application/problem+json"


def _request_fields(request: Request) -> dict[str, Any]:
    return {
        "request_id": getattr(request.state, "request_id", None),
        "path": request.url.path,
        "method": request.method,
    }


def _problem_response(
    request: Request,
    problem: ProblemDetails,
    extra: dict[str, Any] | None = None,
) -> JSONResponse:
    body = problem.model_dump(mode="json", exclude_none=True)
    if extra:
        body.update(extra)
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        body["request_id"] = request_id
    return JSONResponse(status_code=problem.status, content=body, media_type=PROBLEM_JSON)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    logger.warning(
        "Application exception occurred",
        extra={
            **_request_fields(request),
            "exception_type": exc.type,
            "status_code": exc.status_code,
            "detail": exc.detail,
        },
    )
    problem = ProblemDetails(
        type=exc.type,
        title=exc.title,
        status=exc.status_code,
        detail=exc.detail,
        instance=exc.instance or str(request.url),
    )
    return _problem_response(request, problem, exc.extra)


async def keyset_exception_handler(request: Request, exc: KeysetError) -> JSONResponse:
    """Render query building errors that were not converted by a dependency."""
    if isinstance(exc, InvalidOrderingError):
        logger.warning("Invalid ordering input", extra={**_request_fields(request), **exc.details})
        problem = ProblemDetails(
            type="invalid-ordering",
            title="Bad Request",
            status=400,
            detail=exc.message,
            instance=str(request.url),
        )
        return _problem_response(request, problem)

    logger.error(
        "Keyset query could not be built",
        exc_info=exc,
        extra={**_request_fields(request), "error": exc.message},
    )
    problem = ProblemDetails(
        type="pagination-error",
        title="Internal Server Error",
        status=500,
        detail="The page could not be built",
        instance=str(request.url),
    )
    return _problem_response(request, problem)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert request validation errors into a 422 with field errors."""
    field_errors = [
        FieldError(
            field=".".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
            type=error["type"],
            value=error.get("input"),
        )
        for error in exc.errors()
    ]
    logger.warning(
        "Request validation failed",
        extra={**_request_fields(request), "error_count": len(field_errors)},
    )
    problem = ValidationProblemDetails(
        type="validation-error",
        title="Validation Error",
        status=422,
        detail=f"Request validation failed for {len(field_errors)} field(s)",
        instance=str(request.url),
        errors=field_errors,
    )
    return _problem_response(request, problem)


def configure_exception_handlers(app: FastAPI) -> None:
    """Register the problem details handlers on ``app``.

    Example:
        app = FastAPI()
        configure_exception_handlers(app)
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(KeysetError, keyset_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    logger.debug("Exception handlers configured")
