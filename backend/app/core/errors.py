import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base for errors that map onto an HTTP response with an ``error`` body."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationRequired(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidToken(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class AuthorizationDenied(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT


class CapacityConflict(Conflict):
    def __init__(self, message: str = "Not enough availability at this time") -> None:
        super().__init__(message, available=False)


class SlotBusy(Conflict):
    def __init__(self, message: str = "Slot temporarily held by another request") -> None:
        super().__init__(message)


class InvalidStateTransition(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class ServiceUnavailable(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, **jsonable_encoder(exc.extra)},
    )


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return await _app_error_handler(request, ValidationFailed("Validation failed", details=exc.errors()))


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
