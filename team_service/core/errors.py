"""Error taxonomy shared by services and routers.

Services raise these; one set of exception handlers turns them into
``{"error": message}`` responses. Client messages stay generic, the
underlying cause is only logged.
"""

import asyncio
import logging
from functools import wraps
from typing import Callable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong!"


class ServiceError(Exception):
    """Base class for errors with a client-safe message."""

    default_message = GENERIC_ERROR_MESSAGE

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    default_message = "Invalid request"


class NotFoundError(ServiceError):
    default_message = "Not found"


class StoreError(ServiceError):
    pass


class CacheError(ServiceError):
    pass


class CacheUnavailable(ServiceError):
    default_message = "Redis not available"


_STATUS_BY_ERROR: dict[type[ServiceError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    StoreError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    CacheError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    CacheUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(exc: Exception) -> int:
    """Map an error to its HTTP status code."""
    for klass in type(exc).__mro__:
        if klass in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[klass]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def raises_store_error(message: str):
    """
    Decorator for async store operations: database failures become a
    StoreError carrying ``message``. Service errors pass through untouched.
    """

    def decorator(fn: Callable):
        @wraps(fn)
        async def wrapper(*args, **kwargs):
            # asyncio.TimeoutError is not an OSError before Python 3.11
            try:
                return await fn(*args, **kwargs)
            except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
                raise StoreError(message) from e

        return wrapper

    return decorator


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        code = status_for(exc)
        if code >= 500:
            logger.error(
                f"{request.method} {request.url.path} failed: {exc.message} "
                f"(cause: {exc.__cause__!r})"
            )
        return JSONResponse(status_code=code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.info(f"{request.method} {request.url.path} rejected: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": ValidationError.default_message},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": GENERIC_ERROR_MESSAGE},
        )
