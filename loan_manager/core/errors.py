from __future__ import annotations

import logging
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, ClassVar

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class ServiceError(Exception):
    """Base class for errors raised by the service layer.

    Each subclass maps to one HTTP status; routers let these propagate and
    the registered handler renders them in the standard error envelope.
    """

    message: str
    details: dict[str, Any] = field(default_factory=dict)
    code: str | None = None

    status_code: ClassVar[int] = 500
    default_code: ClassVar[str] = "internal_server_error"

    def __post_init__(self) -> None:
        if self.code is None:
            self.code = self.default_code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class InvalidArgumentError(ServiceError):
    status_code = 400
    default_code = "invalid_argument"


class InvalidTransitionError(ServiceError):
    status_code = 400
    default_code = "invalid_status_transition"


class ForbiddenError(ServiceError):
    status_code = 403
    default_code = "forbidden"


class NotFoundError(ServiceError):
    status_code = 404
    default_code = "not_found"


class ConflictError(ServiceError):
    status_code = 409
    default_code = "conflict"


class IdentityProviderError(ServiceError):
    status_code = 500
    default_code = "identity_provider_error"


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Render a failure in the ``{code, message, data, details}`` envelope."""
    body = {"code": code, "message": message, "data": None, "details": details or {}}
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)


def _status_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Request failed"


def _status_code_name(status_code: int) -> str:
    return _status_phrase(status_code).lower().replace("-", "_").replace(" ", "_")


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if isinstance(exc.detail, str) and exc.detail:
        message = exc.detail
    else:
        message = _status_phrase(exc.status_code)
    return error_response(
        exc.status_code,
        _status_code_name(exc.status_code),
        message,
        headers=getattr(exc, "headers", None),
    )


async def service_exception_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return error_response(exc.status_code, exc.code, exc.message, exc.details)


def _field_path(loc: tuple | list) -> str:
    # First element is the request part (body, query, path)
    return ".".join(str(part) for part in loc[1:])


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {"field": _field_path(err.get("loc", ())), "message": err.get("msg", ""), "type": err.get("type")}
        for err in exc.errors()
    ]
    message = "Validation failed"
    if errors:
        first = errors[0]
        message = f"{first['field']}: {first['message']}" if first["field"] else first["message"]
    return error_response(422, "validation_error", message, {"errors": errors})


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return error_response(500, "database_error", "Database error")


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "internal_server_error", "Internal server error")


async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return error_response(
        429,
        "rate_limited",
        "Too many requests",
        {"limit": str(exc.detail)} if exc.detail else None,
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)
    app.add_exception_handler(ServiceError, service_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
