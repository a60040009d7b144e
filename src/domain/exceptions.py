"""Application exceptions.

Each exception carries a machine-readable ``code`` which the API layer maps
onto an HTTP status and an ``ErrorResponse`` body.
"""

from typing import Any


class DomainException(Exception):
    """Base exception for all application errors.

    Attributes:
        code: Machine-readable error code
        message: Human-readable error message
        details: Optional additional error context (dict or list)
    """

    code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | list[Any] | None = None) -> None:
        """Initialize exception.

        Args:
            message: Human-readable error description
            details: Optional additional context about the error
        """
        self.message = message
        self.details = details
        super().__init__(self.message)


class CacheUnavailableError(DomainException):
    """Raised when Redis is not connected or a command fails."""

    code = "CACHE_UNAVAILABLE"


class UpstreamServiceError(DomainException):
    """Raised when an outbound HTTP call fails or returns an error status."""

    code = "UPSTREAM_ERROR"


class UnsupportedContentTypeError(DomainException):
    """Raised when a payload's content type is neither JSON nor XML."""

    code = "UNSUPPORTED_CONTENT_TYPE"
