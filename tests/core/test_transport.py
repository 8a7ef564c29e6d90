"""Tests for the httpx transport and the backend client error policy."""

from unittest.mock import AsyncMock

import httpx
import pytest

from coursekit.core.client import BackendClient
from coursekit.core.context import OperationContext
from coursekit.core.exceptions import (
    GENERIC_ERROR_MESSAGE,
    BackendError,
    NotFoundError,
    TransportError,
)
from coursekit.core.transport import ApiEnvelope, HttpTransport


def make_transport(handler, settings, token: str | None = "secret-token") -> HttpTransport:
    """HttpTransport whose httpx client is served by ``handler``."""
    http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="https://backend.test"
    )
    return HttpTransport(
        settings=settings, token_provider=lambda: token, client=http_client
    )


class TestHttpTransport:
    """Tests for HttpTransport request/decode."""

    @pytest.mark.asyncio
    async def test_decodes_envelope(self, settings) -> None:
        """Envelope fields should be decoded from camelCase."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"isSuccess": True, "message": "ok", "data": [1, 2], "statusCode": 200},
            )

        async with make_transport(handler, settings) as transport:
            envelope = await transport.request("GET", "/api/Courses")

        assert envelope.is_success is True
        assert envelope.data == [1, 2]
        assert envelope.message == "ok"

    @pytest.mark.asyncio
    async def test_sends_bearer_token_and_request_id(self, settings) -> None:
        """Authorization and X-Request-ID headers should be attached."""
        seen: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.headers)
            return httpx.Response(200, json={"isSuccess": True, "data": None})

        async with make_transport(handler, settings) as transport:
            with OperationContext(request_id="req-123"):
                await transport.request("POST", "/api/Courses/1/enroll")

        assert seen["authorization"] == "Bearer secret-token"
        assert seen["x-request-id"] == "req-123"

    @pytest.mark.asyncio
    async def test_no_token_no_authorization_header(self, settings) -> None:
        """Anonymous calls should not send an Authorization header."""
        seen: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.headers)
            return httpx.Response(200, json={"isSuccess": True})

        async with make_transport(handler, settings, token=None) as transport:
            await transport.request("GET", "/api/Courses")

        assert "authorization" not in seen

    @pytest.mark.asyncio
    async def test_missing_status_code_taken_from_response(self, settings) -> None:
        """Envelope without statusCode should get the HTTP status."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"isSuccess": False, "message": "Lesson not found"})

        async with make_transport(handler, settings) as transport:
            envelope = await transport.request("GET", "/api/Lessons/9")

        assert envelope.is_success is False
        assert envelope.status_code == 404

    @pytest.mark.asyncio
    async def test_non_envelope_error_becomes_failed_envelope(self, settings) -> None:
        """Plain-text server errors should decode to a failed envelope."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="Internal Server Error")

        async with make_transport(handler, settings) as transport:
            envelope = await transport.request("GET", "/api/Courses")

        assert envelope.is_success is False
        assert envelope.message is None
        assert envelope.status_code == 500

    @pytest.mark.asyncio
    async def test_timeout_raises_transport_error(self, settings) -> None:
        """Timeouts should raise TransportError with the generic message."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        async with make_transport(handler, settings) as transport:
            with pytest.raises(TransportError) as exc_info:
                await transport.request("GET", "/api/Courses")

        assert exc_info.value.message == GENERIC_ERROR_MESSAGE

    @pytest.mark.asyncio
    async def test_connection_error_raises_transport_error(self, settings) -> None:
        """Connection failures should raise TransportError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with make_transport(handler, settings) as transport:
            with pytest.raises(TransportError):
                await transport.request("GET", "/api/Courses")


def mock_transport(result) -> AsyncMock:
    """Transport double answering every call with one envelope or exception."""
    transport = AsyncMock()
    if isinstance(result, Exception):
        transport.request.side_effect = result
    else:
        transport.request.return_value = result
    return transport


class TestBackendClient:
    """Tests for BackendClient.call error mapping."""

    @pytest.mark.asyncio
    async def test_success_returns_data(self) -> None:
        """Successful envelopes should yield their data."""
        transport = mock_transport(ApiEnvelope.ok({"id": 1}))
        client = BackendClient(transport)

        assert await client.get("/api/Courses/1") == {"id": 1}
        transport.request.assert_awaited_once_with("GET", "/api/Courses/1", None)

    @pytest.mark.asyncio
    async def test_backend_message_is_verbatim(self) -> None:
        """Backend failure messages should be surfaced unchanged."""
        client = BackendClient(
            mock_transport(ApiEnvelope.fail("You are already enrolled in this course"))
        )

        with pytest.raises(BackendError) as exc_info:
            await client.post("/api/Courses/1/enroll", fallback="Failed to enroll")

        assert exc_info.value.message == "You are already enrolled in this course"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_fallback_when_backend_sends_no_message(self) -> None:
        """Operation fallback message should be used when the backend is silent."""
        client = BackendClient(mock_transport(ApiEnvelope.fail(None, 500)))

        with pytest.raises(BackendError) as exc_info:
            await client.put("/api/Lessons/1", {}, fallback="Failed to update lesson")

        assert exc_info.value.message == "Failed to update lesson"

    @pytest.mark.asyncio
    async def test_404_raises_not_found(self) -> None:
        """404 envelopes should raise NotFoundError."""
        client = BackendClient(mock_transport(ApiEnvelope.fail("Lesson not found", 404)))

        with pytest.raises(NotFoundError):
            await client.get("/api/Lessons/1")

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_transport_error(self) -> None:
        """Anything the transport raises should surface as TransportError."""
        client = BackendClient(mock_transport(RuntimeError("boom")))

        with pytest.raises(TransportError) as exc_info:
            await client.delete("/api/Lessons/1")

        assert exc_info.value.message == GENERIC_ERROR_MESSAGE
        assert isinstance(exc_info.value.__cause__, RuntimeError)
