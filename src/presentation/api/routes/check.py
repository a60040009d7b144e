"""Service check endpoints: echo, status probe, version info and view counter."""

from functools import partial
from typing import Annotated

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Request, Response, status
from starlette.concurrency import run_in_threadpool

from src.container import Container
from src.infrastructure.cache.redis_cache import RedisCache
from src.infrastructure.config import Settings
from src.infrastructure.logging.config import get_logger
from src.infrastructure.workers.pool import WorkerPool
from src.presentation.schemas.check import InfoResponse, ViewResponse
from src.presentation.schemas.error import ErrorResponse


logger = get_logger(__name__)

router = APIRouter(prefix="/check", tags=["check"])

VIEW_COUNTER_KEY = "views"
DEFAULT_MEDIA_TYPE = "application/octet-stream"


def audit_echo(request_id: str, size: int, content_type: str) -> None:
    """Background audit record for an echoed payload."""
    logger.info("echo_audited", request_id=request_id, size_bytes=size, content_type=content_type)


@router.post(
    "/echo",
    status_code=status.HTTP_200_OK,
    summary="Echo Request Body",
    description="""
Return the request body unchanged, with the request's Content-Type.

An audit record is queued on the background worker pool for every call.
    """,
)
@inject
async def echo(
    request: Request,
    worker_pool: Annotated[WorkerPool, Depends(Provide[Container.worker_pool])],
) -> Response:
    """Echo the raw request body back to the caller."""
    body = await request.body()
    content_type = request.headers.get("content-type") or DEFAULT_MEDIA_TYPE

    # submit() blocks while the pool's queue is full
    await run_in_threadpool(
        worker_pool.submit,
        partial(
            audit_echo,
            getattr(request.state, "request_id", ""),
            len(body),
            content_type,
        ),
    )

    return Response(content=body, media_type=content_type)


@router.get(
    "/status",
    status_code=status.HTTP_200_OK,
    summary="Status Probe",
    description="Respond 200 with an empty body. Intended for load balancer probes.",
)
async def status_probe() -> Response:
    """Liveness probe."""
    return Response(status_code=status.HTTP_200_OK)


@router.get(
    "/info",
    response_model=InfoResponse,
    status_code=status.HTTP_200_OK,
    summary="Service Version",
)
@inject
async def info(
    settings: Annotated[Settings, Depends(Provide[Container.config])],
) -> InfoResponse:
    """Return the running service version."""
    return InfoResponse(version=settings.app_version)


@router.get(
    "/view",
    response_model=ViewResponse,
    status_code=status.HTTP_200_OK,
    summary="Count A View",
    responses={status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse}},
    description="""
Increment the shared page view counter in Redis and return the new total.

Returns 503 `CACHE_UNAVAILABLE` when Redis cannot be reached.
    """,
)
@inject
async def view(
    cache: Annotated[RedisCache, Depends(Provide[Container.cache])],
) -> ViewResponse:
    """Increment and return the view counter."""
    count = await cache.incr(VIEW_COUNTER_KEY)
    return ViewResponse(count=count)
