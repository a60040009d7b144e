"""Response schemas for check and health endpoints."""

from typing import Any

from pydantic import BaseModel


class InfoResponse(BaseModel):
    """Service version information."""

    version: str


class ViewResponse(BaseModel):
    """Page view counter."""

    count: int


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str
    redis: str
    worker_pool: dict[str, Any]

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "status": "healthy",
                    "version": "0.0.1",
                    "environment": "production",
                    "redis": "healthy",
                    "worker_pool": {
                        "state": "running",
                        "capacity": 100,
                        "pending": 0,
                        "submitted": 42,
                        "completed": 42,
                        "failed": 0,
                        "dropped": 0,
                    },
                }
            ]
        }
    }
