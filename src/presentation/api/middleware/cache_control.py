"""No-cache headers middleware."""

from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware


NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache,no-store,must-revalidate",  # HTTP 1.1
    "Pragma": "no-cache",  # HTTP 1.0
    "Expires": "0",  # Proxies
}


class NoCacheHeaderMiddleware(BaseHTTPMiddleware):
    """Forbid clients and proxies from caching any response."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Add no-cache headers to response."""
        response = await call_next(request)
        response.headers.update(NO_CACHE_HEADERS)
        return response
