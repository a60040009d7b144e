"""Outbound HTTP client for JSON and XML upstream services."""

from typing import Any

import httpx

from src.domain.exceptions import UnsupportedContentTypeError, UpstreamServiceError
from src.infrastructure.config import Settings
from src.infrastructure.logging.config import get_logger
from src.utils.payload import (
    JSON_CONTENT_TYPE,
    XML_CONTENT_TYPE,
    BodyFormat,
    decode_body,
    detect_format,
    encode_body,
)


logger = get_logger(__name__)

_CONTENT_TYPE_HEADERS = {
    BodyFormat.JSON: JSON_CONTENT_TYPE,
    BodyFormat.XML: f"{XML_CONTENT_TYPE};charset=UTF-8",
}


class HttpClient:
    """Thin async wrapper around a shared ``httpx.AsyncClient``.

    Request bodies are encoded as JSON or XML according to the requested
    content type; responses are decoded by their own Content-Type header.
    Errors are raised as ``UpstreamServiceError``, never retried.
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Application settings (timeout, proxy, TLS verification)
            transport: Optional transport override, mainly for tests
        """
        self._settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def is_open(self) -> bool:
        """Whether the underlying connection pool has been created."""
        return self._client is not None

    def _get_client(self) -> httpx.AsyncClient:
        # Created on first request; close() before any request has nothing to release
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._settings.http_client_timeout,
                proxy=self._settings.http_client_proxy,
                verify=self._settings.http_client_verify_ssl,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close pooled connections, if any were opened."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def post(
        self,
        url: str,
        payload: Any,
        content_type: str = JSON_CONTENT_TYPE,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """POST a payload and return the decoded response body.

        Args:
            url: Target URL
            payload: JSON-serializable value, or a single-rooted tree for XML
            content_type: ``application/json`` or ``text/xml``
            headers: Extra request headers

        Returns:
            Decoded response body, or None for an empty response

        Raises:
            UnsupportedContentTypeError: If content_type is neither JSON nor XML
            UpstreamServiceError: On transport errors, error statuses or bad bodies
        """
        body_format = detect_format(content_type)
        if body_format is None:
            raise UnsupportedContentTypeError(
                f"Cannot encode request body as {content_type!r}",
                details={"content_type": content_type},
            )

        request_headers = {"Content-Type": _CONTENT_TYPE_HEADERS[body_format], **(headers or {})}
        return await self._send(
            "POST", url, content=encode_body(payload, body_format), headers=request_headers
        )

    async def get(self, url: str, headers: dict[str, str] | None = None) -> Any:
        """GET a resource and return the decoded response body.

        Raises:
            UpstreamServiceError: On transport errors, error statuses or bad bodies
        """
        return await self._send("GET", url, headers=headers)

    async def _send(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self._get_client().request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "upstream_error_status",
                method=method,
                url=url,
                status_code=e.response.status_code,
            )
            raise UpstreamServiceError(
                f"{method} {url} returned {e.response.status_code}",
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            logger.error("upstream_request_failed", method=method, url=url, error=str(e))
            raise UpstreamServiceError(f"{method} {url} failed: {e}") from e

        logger.debug("upstream_request_completed", method=method, url=url)
        return self._decode(response)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None

        content_type = response.headers.get("Content-Type", "")
        body_format = detect_format(content_type)
        if body_format is None:
            raise UnsupportedContentTypeError(
                f"Cannot decode response body of type {content_type!r}",
                details={"content_type": content_type},
            )

        try:
            return decode_body(response.content, body_format)
        except (ValueError, SyntaxError) as e:
            raise UpstreamServiceError(
                f"Malformed {body_format} response from {response.request.url}"
            ) from e
