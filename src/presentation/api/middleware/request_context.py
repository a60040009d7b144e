"""Request ID middleware.

Every request gets a correlation id:
1. The inbound ``X-Request-ID`` header, when present and well-formed
2. Otherwise a freshly generated UUIDv7 (time-ordered, sortable)

The id flows through:
- Request state (``request.state.request_id``), read by the request logger
- structlog contextvars, so every log line of the request carries it
- The active OpenTelemetry span, when tracing is enabled
- The ``X-Request-ID`` response header
"""

from collections.abc import Awaitable, Callable

import structlog
from fastapi import Request, Response
from opentelemetry import trace
from starlette.middleware.base import BaseHTTPMiddleware
from uuid_extension import uuid7


REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assign or propagate a request correlation id."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Bind the request id to request state and logging context."""
        request_id = self._extract_request_id(request)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        request.state.request_id = request_id

        span = trace.get_current_span()
        if span.is_recording():
            span.set_attribute("request_id", request_id)

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    def _extract_request_id(self, request: Request) -> str:
        """Use the upstream id if it is printable and bounded, else generate one."""
        incoming = request.headers.get(REQUEST_ID_HEADER, "").strip()
        if incoming and len(incoming) <= MAX_REQUEST_ID_LENGTH and incoming.isprintable():
            return incoming
        return str(uuid7())
