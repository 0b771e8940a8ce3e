# helpdesk/core/errors.py
"""
Ієрархія доменних помилок і їх перетворення у JSON-відповіді.

Сервіси кидають підкласи AppError; роутери їх не ловлять,
обробники, зареєстровані в main.py, віддають {"detail", "code"}.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from helpdesk.core.logging import log_extra

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"
    default_message = "Validation failed"

    def __init__(self, message: str | None = None, field: str | None = None):
        super().__init__(message)
        self.field = field


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "UNAUTHORIZED"
    default_message = "Not authenticated"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"
    default_message = "Forbidden"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"
    default_message = "Not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"
    default_message = "Conflict"


def _body(message: str, code: str, **extra) -> dict:
    return {"detail": message, "code": code, **extra}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    extra = {}
    if isinstance(exc, ValidationError) and exc.field:
        extra["errors"] = [{"field": exc.field, "message": exc.message}]
    logger.info("%s: %s", exc.error_code, exc.message, extra=log_extra(request))
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=_body(exc.message, exc.error_code, **extra),
        headers=headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc) or None, "message": err.get("msg", "invalid")})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_body("Validation failed", "VALIDATION_ERROR", errors=errors),
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    # унікальні індекси (email, назва черги, єдина default-черга)
    logger.warning("integrity_error: %s", exc.orig, extra=log_extra(request))
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=_body("Resource conflicts with existing data", "CONFLICT"),
    )


def make_unhandled_handler(*, hide_details: bool):
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_error", extra=log_extra(request))
        message = "Internal server error" if hide_details else str(exc) or exc.__class__.__name__
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_body(message, "INTERNAL_ERROR"),
        )

    return unhandled_error_handler


def register_exception_handlers(app: FastAPI, *, hide_details: bool = False) -> None:
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, make_unhandled_handler(hide_details=hide_details))
