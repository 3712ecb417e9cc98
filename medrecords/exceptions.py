"""
Application error type and the handlers that turn errors into JSON bodies.

Every error response has the shape {"message": <text>}; validation failures
add an "errors" list.
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
import logging

# Set up logging
logger = logging.getLogger(__name__)

class AppException(Exception):
    """
    An error with a known HTTP status and a message safe to show the client.
    """
    def __init__(self, status_code: int, detail: str):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message, **extra})


async def app_exception_handler(request: Request, exc: AppException):
    """
    Render an AppException with its own status and message.

    Client errors are logged as warnings, server errors as errors.
    """
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.detail}")
    return error_response(exc.status_code, exc.detail)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Request bodies that do not match their schema are client errors (400).

    Args:
        request: The request that caused the exception
        exc: The validation exception instance

    Returns:
        JSONResponse: message plus the individual field errors
    """
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "Validation error",
        errors=jsonable_encoder(exc.errors()),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Last resort for errors no route handled. The trace is logged, the client
    only sees a generic message.
    """
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error.")


def register_exception_handlers(app):
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
