"""HTTP request/response logging middleware.

Emits exactly one structured ``request_completed`` event per request, after
the downstream app has returned. For JSON (``application/json``) and XML
(``text/xml``) requests the request and response bodies are decoded into the
event; any other content type is flagged with ``unsupported_content_type``
instead.

Implemented as a plain ASGI middleware: the request body is drained once into
a buffer and replayed to the downstream app through a wrapped ``receive``, and
``send`` is wrapped to observe the status code and response bytes. The
response itself passes through untouched.
"""

import time
from datetime import UTC, datetime
from typing import Any

from starlette import status
from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from src.infrastructure.logging.config import get_logger
from src.utils.payload import detect_format, try_decode_body


async def _read_body(receive: Receive) -> tuple[bytes, bool]:
    """Drain the request body.

    Returns:
        The full body and whether the client disconnected while reading
    """
    chunks: list[bytes] = []
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            return b"".join(chunks), True
        chunks.append(message.get("body", b""))
        if not message.get("more_body", False):
            return b"".join(chunks), False


def _replay_body(body: bytes, disconnected: bool, receive: Receive) -> Receive:
    """Build a ``receive`` that yields the buffered body, then defers to the original."""
    replayed = False

    async def replay() -> Message:
        nonlocal replayed
        if not replayed:
            replayed = True
            return {"type": "http.request", "body": body, "more_body": False}
        if disconnected:
            return {"type": "http.disconnect"}
        return await receive()

    return replay


def _remote_addr(request: Request) -> str:
    if request.client is None:
        return ""
    return f"{request.client.host}:{request.client.port}"


class RequestLoggerMiddleware:
    """Log method, client, URI, bodies, status and timing for every request.

    Body decode failures are swallowed: the body field is logged as null and
    the request proceeds normally. If the captured bodies cannot be rendered
    by the logging pipeline, the event is written without them and flagged
    with ``body_capture_failed``. If the downstream app raises, the event
    is still emitted (status 500 unless a response had already started) and
    the exception propagates unchanged.
    """

    def __init__(self, app: ASGIApp, logger: Any | None = None) -> None:
        """Initialize middleware.

        Args:
            app: Downstream ASGI application
            logger: structlog-style logger receiving the events; defaults to
                the module logger
        """
        self.app = app
        self.logger = logger if logger is not None else get_logger(__name__)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        request = Request(scope)
        content_type = request.headers.get("content-type", "")
        body_format = detect_format(content_type)

        fields: dict[str, Any] = {
            "start": datetime.now(UTC).isoformat(),
            "request_id": getattr(request.state, "request_id", "") or "",
            "method": request.method,
            "remote_addr": _remote_addr(request),
            "user_agent": request.headers.get("user-agent", ""),
            "uri": str(request.url),
            "content_type": content_type,
        }

        if body_format is not None:
            body, disconnected = await _read_body(receive)
            fields["request_body"] = try_decode_body(body, body_format)
            receive = _replay_body(body, disconnected, receive)

        status_code = status.HTTP_200_OK
        response_started = False
        response_chunks: list[bytes] = []

        async def capture_send(message: Message) -> None:
            nonlocal status_code, response_started
            if message["type"] == "http.response.start":
                status_code = message["status"]
                response_started = True
            elif message["type"] == "http.response.body" and body_format is not None:
                response_chunks.append(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, receive, capture_send)
        except Exception:
            if not response_started:
                status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
            raise
        finally:
            if body_format is not None:
                fields["response_body"] = try_decode_body(b"".join(response_chunks), body_format)
            else:
                fields["unsupported_content_type"] = content_type
            fields["status_code"] = status_code
            fields["duration"] = f"{time.perf_counter() - start_time:.3f}s"

            self._emit(fields)

    def _emit(self, fields: dict[str, Any]) -> None:
        """Write the event, retrying without bodies if rendering them fails."""
        try:
            self.logger.info("request_completed", **fields)
        except Exception as e:
            if "request_body" not in fields and "response_body" not in fields:
                raise
            fields.pop("request_body", None)
            fields.pop("response_body", None)
            self.logger.info(
                "request_completed",
                body_capture_failed=True,
                body_capture_error=type(e).__name__,
                **fields,
            )
