"""Global error handler middleware.

Every error body has a stable ``code`` and a human ``message``; ``details`` is
added when there is something structured to report (field errors, required roles).
"""
from typing import Any

import sentry_sdk
import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.schemas.common import ErrorDetail

logger = structlog.get_logger()


class AppException(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationFailed(AppException):
    status_code = 400
    code = "VALIDATION_ERROR"


class Unauthorized(AppException):
    status_code = 401
    code = "UNAUTHORIZED"


class Forbidden(AppException):
    status_code = 403
    code = "FORBIDDEN"


class NotFound(AppException):
    status_code = 404
    code = "NOT_FOUND"


class InvalidState(AppException):
    status_code = 409
    code = "INVALID_STATE"


class Conflict(AppException):
    status_code = 409
    code = "CONFLICT"


def error_body(code: str, message: str, details: Any = None) -> dict:
    body = ErrorDetail(code=code, message=message).model_dump(exclude={"details"})
    if details is not None:
        body["details"] = jsonable_encoder(details)
    return body


def setup_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppException)
    async def app_exception_handler(_request: Request, exc: AppException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.code, exc.message, exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        details = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=error_body("VALIDATION_ERROR", "Invalid request data", details),
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error("database_error", path=request.url.path, error=str(exc), exc_info=True)
        sentry_sdk.capture_exception(exc)
        return JSONResponse(
            status_code=500,
            content=error_body("INTERNAL_ERROR", "A database error occurred."),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_exception", path=request.url.path, error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=error_body("INTERNAL_ERROR", "An unexpected error occurred."),
        )
