# Core infrastructure
from coursekit.core.client import BackendClient
from coursekit.core.context import (
    OperationContext,
    clear_context,
    get_context,
    get_request_id,
    set_request_id,
)
from coursekit.core.exceptions import (
    BackendError,
    CourseKitError,
    PermissionDeniedError,
    TransportError,
    ValidationError,
)
from coursekit.core.logging import configure_structlog, get_logger
from coursekit.core.transport import ApiEnvelope, HttpTransport, Transport


__all__ = [
    "ApiEnvelope",
    "BackendClient",
    "BackendError",
    "CourseKitError",
    "HttpTransport",
    "OperationContext",
    "PermissionDeniedError",
    "Transport",
    "TransportError",
    "ValidationError",
    "clear_context",
    "configure_structlog",
    "get_context",
    "get_logger",
    "get_request_id",
    "set_request_id",
]
