"""Transport layer for the course backend.

Every backend call returns the same envelope::

    {"isSuccess": bool, "message": str, "data": ..., "statusCode": int}

``Transport`` is the seam the services depend on. ``HttpTransport`` is the
production implementation on top of ``httpx.AsyncClient``; tests provide
their own implementations.
"""

from collections.abc import Callable
from typing import Any, Protocol

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from coursekit.config.settings import Settings, get_settings
from coursekit.core.context import get_request_id
from coursekit.core.exceptions import GENERIC_ERROR_MESSAGE, TransportError


logger = structlog.get_logger(__name__)


class ApiEnvelope(BaseModel):
    """Response envelope shared by every backend endpoint."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    is_success: bool
    message: str | None = None
    data: Any = None
    errors: list[str] = Field(default_factory=list)
    status_code: int | None = None

    @classmethod
    def ok(cls, data: Any = None, message: str | None = None) -> "ApiEnvelope":
        """Build a successful envelope."""
        return cls(is_success=True, data=data, message=message, status_code=200)

    @classmethod
    def fail(cls, message: str | None, status_code: int = 400) -> "ApiEnvelope":
        """Build a failed envelope (no data)."""
        return cls(is_success=False, message=message, status_code=status_code)


class Transport(Protocol):
    """Generic request/response transport."""

    async def request(
        self, method: str, path: str, body: Any | None = None
    ) -> ApiEnvelope: ...


TokenProvider = Callable[[], str | None]


class HttpTransport:
    """httpx-backed transport with bearer token injection.

    The underlying client is created lazily and reused; call ``aclose`` (or
    use ``async with``) when done.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        token_provider: TokenProvider | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings or get_settings()
        self._token_provider = token_provider
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.api_base_url,
                timeout=self.settings.api_timeout_seconds,
                verify=self.settings.api_verify_ssl,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    def _headers(self) -> dict[str, str]:
        headers = {}
        token = self._token_provider() if self._token_provider else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        request_id = get_request_id()
        if request_id:
            headers["X-Request-ID"] = request_id
        return headers

    async def request(
        self, method: str, path: str, body: Any | None = None
    ) -> ApiEnvelope:
        """Send one request and decode the envelope.

        Raises:
            TransportError: On timeouts and connection failures.
        """
        try:
            response = await self.client.request(
                method, path, json=body, headers=self._headers()
            )
        except httpx.TimeoutException as e:
            logger.error("Backend timeout", method=method, path=path, error=str(e))
            raise TransportError from e
        except httpx.RequestError as e:
            logger.error(
                "Backend request error", method=method, path=path, error=str(e)
            )
            raise TransportError from e

        return self._decode(response)

    @staticmethod
    def _decode(response: httpx.Response) -> ApiEnvelope:
        try:
            payload = response.json()
        except ValueError:
            payload = None

        if isinstance(payload, dict) and "isSuccess" in payload:
            envelope = ApiEnvelope.model_validate(payload)
            if envelope.status_code is None:
                envelope.status_code = response.status_code
            return envelope

        if response.is_success:
            return ApiEnvelope.ok(payload)

        logger.warning(
            "Backend returned non-envelope error",
            status_code=response.status_code,
            response_text=response.text[:500],
        )
        return ApiEnvelope.fail(None, status_code=response.status_code)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()


__all__ = [
    "GENERIC_ERROR_MESSAGE",
    "ApiEnvelope",
    "HttpTransport",
    "TokenProvider",
    "Transport",
]
