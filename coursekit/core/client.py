"""Backend client: envelope unwrapping and error mapping.

Services never look at envelopes themselves. ``BackendClient.call`` returns
the envelope data on success and raises from the coursekit taxonomy
otherwise:

- envelope ``isSuccess=false`` -> BackendError with the backend message
  verbatim, or the caller's fallback when the backend sent none
- anything the transport raises -> TransportError with the generic message
"""

from typing import Any

import structlog

from coursekit.core.exceptions import (
    BackendError,
    CourseKitError,
    NotFoundError,
    TransportError,
)
from coursekit.core.transport import ApiEnvelope, Transport


logger = structlog.get_logger(__name__)

HTTP_NOT_FOUND = 404


class BackendClient:
    """Thin wrapper around a ``Transport`` applying the error policy."""

    def __init__(self, transport: Transport):
        self.transport = transport

    async def send(
        self, method: str, path: str, body: Any | None = None
    ) -> ApiEnvelope:
        """Send a request and return the raw envelope.

        Raises:
            TransportError: If the transport raised for any reason.
        """
        try:
            return await self.transport.request(method, path, body)
        except TransportError:
            raise
        except CourseKitError:
            raise
        except Exception as e:
            logger.exception(
                "Transport raised unexpectedly", method=method, path=path
            )
            raise TransportError from e

    async def call(
        self,
        method: str,
        path: str,
        body: Any | None = None,
        *,
        fallback: str = "Request failed",
    ) -> Any:
        """Send a request and return its data.

        Args:
            method: HTTP method.
            path: Backend path.
            body: Optional JSON body.
            fallback: Message used when the backend failed without one.

        Raises:
            BackendError: If the envelope reports failure.
            TransportError: If the request could not be completed.
        """
        envelope = await self.send(method, path, body)
        if envelope.is_success:
            return envelope.data

        message = envelope.message or fallback
        logger.warning(
            "Backend call failed",
            method=method,
            path=path,
            status_code=envelope.status_code,
            message=message,
        )
        if envelope.status_code == HTTP_NOT_FOUND:
            raise NotFoundError(message, status_code=envelope.status_code)
        raise BackendError(message, status_code=envelope.status_code)

    async def get(self, path: str, *, fallback: str = "Request failed") -> Any:
        return await self.call("GET", path, fallback=fallback)

    async def post(
        self, path: str, body: Any | None = None, *, fallback: str = "Request failed"
    ) -> Any:
        return await self.call("POST", path, body, fallback=fallback)

    async def put(
        self, path: str, body: Any | None = None, *, fallback: str = "Request failed"
    ) -> Any:
        return await self.call("PUT", path, body, fallback=fallback)

    async def delete(self, path: str, *, fallback: str = "Request failed") -> Any:
        return await self.call("DELETE", path, fallback=fallback)
