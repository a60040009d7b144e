"""API schemas."""

from src.presentation.schemas.check import HealthResponse, InfoResponse, ViewResponse
from src.presentation.schemas.error import ErrorDetail, ErrorResponse


__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
    "InfoResponse",
    "ViewResponse",
]
