"""Tests for the outbound HTTP client.

Test Organization:
- TestHttpClientPost: JSON/XML request encoding and response decoding
- TestHttpClientErrors: Error statuses, transport failures and bad bodies
- TestHttpClientLifecycle: Lazy connection pool creation
"""

import json
from collections.abc import Callable

import httpx
import pytest

from src.domain.exceptions import UnsupportedContentTypeError, UpstreamServiceError
from src.external.http_client import HttpClient
from src.infrastructure.config import Settings


Handler = Callable[[httpx.Request], httpx.Response]


def make_client(handler: Handler) -> HttpClient:
    """Build an HttpClient whose requests are answered by handler."""
    return HttpClient(Settings(), transport=httpx.MockTransport(handler))


class TestHttpClientPost:
    """Test request encoding and response decoding."""

    async def test_post_json(self) -> None:
        """Test JSON payloads are sent compact and JSON responses decoded.

        Arrange: Upstream echoes the request body back as JSON
        Act: POST a dict
        Assert: Request carried JSON headers; response decoded to the same dict
        """
        # Arrange
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200, content=request.content, headers={"Content-Type": "application/json"}
            )

        client = make_client(handler)

        # Act
        result = await client.post("https://upstream.test/orders", {"id": 1, "tags": ["a"]})
        await client.close()

        # Assert
        assert result == {"id": 1, "tags": ["a"]}
        assert seen[0].method == "POST"
        assert seen[0].headers["Content-Type"] == "application/json"
        assert json.loads(seen[0].content) == {"id": 1, "tags": ["a"]}

    async def test_post_xml(self) -> None:
        """Test XML payloads are serialized and XML responses decoded."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                content=b"<result><ok>true</ok></result>",
                headers={"Content-Type": "text/xml; charset=utf-8"},
            )

        client = make_client(handler)

        result = await client.post(
            "https://upstream.test/soap", {"order": {"@id": "7"}}, content_type="text/xml"
        )
        await client.close()

        assert result == {"result": {"ok": "true"}}
        assert seen[0].headers["Content-Type"] == "text/xml;charset=UTF-8"
        assert b'<order id="7"' in seen[0].content

    async def test_extra_headers_are_sent(self) -> None:
        """Test caller headers are merged into the request."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        client = make_client(handler)

        result = await client.post(
            "https://upstream.test/", {"a": 1}, headers={"X-Request-ID": "abc"}
        )
        await client.close()

        assert result is None
        assert seen[0].headers["X-Request-ID"] == "abc"

    async def test_get_decodes_json(self) -> None:
        """Test GET responses are decoded by their Content-Type."""
        client = make_client(
            lambda request: httpx.Response(200, json={"version": "1.2.3"})
        )

        result = await client.get("https://upstream.test/info")
        await client.close()

        assert result == {"version": "1.2.3"}

    async def test_post_unsupported_content_type_raises(self) -> None:
        """Test only JSON and XML request bodies can be encoded."""
        client = make_client(lambda request: httpx.Response(200))

        with pytest.raises(UnsupportedContentTypeError):
            await client.post("https://upstream.test/", "data", content_type="text/plain")
        await client.close()


class TestHttpClientErrors:
    """Test failures surface as domain exceptions."""

    async def test_error_status_raises_upstream_error(self) -> None:
        """Test 5xx responses raise UpstreamServiceError with the status."""
        client = make_client(lambda request: httpx.Response(503))

        with pytest.raises(UpstreamServiceError) as exc_info:
            await client.get("https://upstream.test/")
        await client.close()

        assert exc_info.value.details == {"status_code": 503}

    async def test_transport_error_raises_upstream_error(self) -> None:
        """Test connection failures raise UpstreamServiceError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        with pytest.raises(UpstreamServiceError, match="failed"):
            await client.get("https://upstream.test/")
        await client.close()

    @pytest.mark.parametrize(
        ("content", "content_type"),
        [(b"{broken", "application/json"), (b"<open>", "text/xml")],
    )
    async def test_malformed_body_raises_upstream_error(
        self, content: bytes, content_type: str
    ) -> None:
        """Test undecodable responses raise UpstreamServiceError."""
        client = make_client(
            lambda request: httpx.Response(
                200, content=content, headers={"Content-Type": content_type}
            )
        )

        with pytest.raises(UpstreamServiceError, match="Malformed"):
            await client.get("https://upstream.test/")
        await client.close()

    async def test_unsupported_response_type_raises(self) -> None:
        """Test responses that are neither JSON nor XML are rejected."""
        client = make_client(
            lambda request: httpx.Response(
                200, content=b"hello", headers={"Content-Type": "text/plain"}
            )
        )

        with pytest.raises(UnsupportedContentTypeError):
            await client.get("https://upstream.test/")
        await client.close()


class TestHttpClientLifecycle:
    """Test the connection pool is only opened on demand."""

    async def test_close_before_any_request_opens_nothing(self) -> None:
        """Test a client that never sent a request has nothing to close."""
        client = make_client(lambda request: httpx.Response(204))

        await client.close()

        assert client.is_open is False

    async def test_first_request_opens_and_close_releases(self) -> None:
        """Test the pool is created lazily and released on close.

        Arrange: Unused client
        Act: Send one request, then close
        Assert: Open after the request, closed afterwards
        """
        # Arrange
        client = make_client(lambda request: httpx.Response(204))
        assert client.is_open is False

        # Act
        await client.get("https://upstream.test/")
        opened = client.is_open
        await client.close()

        # Assert
        assert opened is True
        assert client.is_open is False
