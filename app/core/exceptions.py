"""Error taxonomy and the FastAPI handlers that render it as {"error": ...}."""
import logging

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base error carrying a short machine-readable message and an HTTP status."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    def __init__(self, message: str = "validation error", status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(message, status_code)


class PayloadTooLargeError(ValidationError):
    def __init__(self, message: str = "file too large"):
        super().__init__(message, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)


class AuthError(AppError):
    def __init__(self, message: str = "Authorization required"):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)


class ForbiddenError(AppError):
    def __init__(self, message: str = "forbidden"):
        super().__init__(message, status.HTTP_403_FORBIDDEN)


class NotFoundError(AppError):
    def __init__(self, message: str = "not found"):
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class ConflictError(AppError):
    def __init__(self, message: str = "conflict"):
        super().__init__(message, status.HTTP_409_CONFLICT)


class InternalError(AppError):
    def __init__(self, message: str = "internal"):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)


class ExtractionError(Exception):
    """Frame extraction failed. Absorbed by the thumbnail resolver, never rendered."""

    def __init__(self, message: str, cause: BaseException | None = None):
        self.message = message
        self.cause = cause
        super().__init__(message)


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "invalid request", "details": jsonable_encoder(exc.errors())},
    )


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal"},
    )
