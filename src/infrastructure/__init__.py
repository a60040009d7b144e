"""Infrastructure layer: configuration, logging, Redis, worker pool and telemetry."""

__all__ = [
    "cache",
    "config",
    "logging",
    "telemetry",
    "workers",
]
