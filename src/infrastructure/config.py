"""Application configuration with environment variable support."""

from functools import lru_cache
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("json", "console")
LOG_STREAM_OUTPUTS = ("stdout", "stderr", "discard")
FILE_OUTPUT_PREFIX = "file://"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="basic-api", alias="APP_NAME")
    app_version: str = Field(default="0.0.1", alias="APP_VERSION")
    app_env: str = Field(default="development", alias="APP_ENV")
    debug: bool = Field(default=False, alias="DEBUG")

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    workers: int = Field(default=1, alias="WORKERS")
    reload: bool = Field(default=False, alias="RELOAD")
    shutdown_timeout: int = Field(
        default=15,
        alias="SHUTDOWN_TIMEOUT",
        description="Seconds to wait for in-flight requests on shutdown",
    )

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")
    log_output: str = Field(
        default="stdout",
        alias="LOG_OUTPUT",
        description="One of stdout, stderr, discard or file://path/to/file.log",
    )

    # Worker pool
    worker_pool_size: int = Field(
        default=100,
        alias="WORKER_POOL_SIZE",
        description="Capacity of the background task queue",
    )

    # Redis
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    redis_max_connections: int = Field(default=10, alias="REDIS_MAX_CONNECTIONS")
    cache_enabled: bool = Field(default=True, alias="CACHE_ENABLED")

    # Outbound HTTP
    http_client_timeout: float = Field(default=10.0, alias="HTTP_CLIENT_TIMEOUT")
    http_client_proxy: str | None = Field(default=None, alias="HTTP_CLIENT_PROXY")
    http_client_verify_ssl: bool = Field(default=True, alias="HTTP_CLIENT_VERIFY_SSL")

    # OpenTelemetry
    otel_enabled: bool = Field(default=False, alias="OTEL_ENABLED")
    otel_service_name: str = Field(default="basic-api", alias="OTEL_SERVICE_NAME")
    otel_exporter_otlp_endpoint: str = Field(
        default="http://localhost:4317", alias="OTEL_EXPORTER_OTLP_ENDPOINT"
    )
    otel_exporter_otlp_insecure: bool = Field(default=True, alias="OTEL_EXPORTER_OTLP_INSECURE")
    otel_trace_sample_rate: float = Field(default=1.0, alias="OTEL_TRACE_SAMPLE_RATE")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize the log level name."""
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {list(LOG_LEVELS)}")
        return level

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log renderer name."""
        fmt = v.lower()
        if fmt not in LOG_FORMATS:
            raise ValueError(f"LOG_FORMAT must be one of {list(LOG_FORMATS)}")
        return fmt

    @field_validator("log_output")
    @classmethod
    def validate_log_output(cls, v: str) -> str:
        """Validate log sink.

        Stream names are case-insensitive; file sinks need a non-empty path.
        """
        if v.startswith(FILE_OUTPUT_PREFIX):
            if not v[len(FILE_OUTPUT_PREFIX) :]:
                raise ValueError("LOG_OUTPUT file:// sink requires a path")
            return v
        output = v.lower()
        if output not in LOG_STREAM_OUTPUTS:
            raise ValueError(
                f"LOG_OUTPUT must be one of {list(LOG_STREAM_OUTPUTS)} or file://<path>"
            )
        return output

    @field_validator("worker_pool_size")
    @classmethod
    def validate_worker_pool_size(cls, v: int) -> int:
        """Validate worker pool capacity is within reasonable bounds."""
        if v < 1 or v > 100000:
            raise ValueError("Worker pool size must be between 1 and 100000")
        return v

    @field_validator("http_client_proxy", mode="before")
    @classmethod
    def empty_proxy_is_none(cls, v: Any) -> Any:
        """Treat an empty proxy string as no proxy."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def log_file_path(self) -> str | None:
        """Path of the log file when LOG_OUTPUT is a file sink."""
        if self.log_output.startswith(FILE_OUTPUT_PREFIX):
            return self.log_output[len(FILE_OUTPUT_PREFIX) :]
        return None

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
