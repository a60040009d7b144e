"""Global exception handling for the FastAPI application.

Converts exceptions into consistent JSON responses following the
ErrorResponse schema, with matching HTTP status codes.
"""

from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.domain.exceptions import (
    CacheUnavailableError,
    DomainException,
    UnsupportedContentTypeError,
    UpstreamServiceError,
)
from src.infrastructure.logging.config import get_logger
from src.presentation.schemas.error import ErrorDetail, ErrorResponse


logger = get_logger(__name__)

# Type alias for cleaner function signatures
ExceptionHandler = Callable[[Request, Any], Awaitable[JSONResponse]]

_DOMAIN_STATUS_CODES: dict[type[DomainException], int] = {
    CacheUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
    UpstreamServiceError: status.HTTP_502_BAD_GATEWAY,
    UnsupportedContentTypeError: status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
}


def _error_response(status_code: int, code: str, message: str, details: Any = None) -> JSONResponse:
    error_response = ErrorResponse(error=ErrorDetail(code=code, message=message, details=details))
    return JSONResponse(status_code=status_code, content=error_response.model_dump())


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """Map application exceptions to HTTP responses.

    - CacheUnavailableError → 503 Service Unavailable
    - UpstreamServiceError → 502 Bad Gateway
    - UnsupportedContentTypeError → 415 Unsupported Media Type
    - Generic DomainException → 400 Bad Request
    """
    logger.warning(
        "domain_exception",
        exception_type=type(exc).__name__,
        code=exc.code,
        message=exc.message,
        path=request.url.path,
    )

    status_code = next(
        (code for exc_type, code in _DOMAIN_STATUS_CODES.items() if isinstance(exc, exc_type)),
        status.HTTP_400_BAD_REQUEST,
    )
    return _error_response(status_code, exc.code, exc.message, exc.details)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions as last resort (500).

    Logs full exception details while returning a safe generic message.
    """
    logger.exception(
        "unhandled_exception",
        exception_type=type(exc).__name__,
        error=str(exc),
        path=request.url.path,
    )

    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_SERVER_ERROR",
        "An unexpected error occurred",
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application."""
    domain_handler: ExceptionHandler = domain_exception_handler
    app.add_exception_handler(DomainException, domain_handler)

    # Catch-all, served by Starlette's outermost ServerErrorMiddleware
    generic_handler: ExceptionHandler = generic_exception_handler
    app.add_exception_handler(Exception, generic_handler)
