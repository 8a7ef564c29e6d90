"""Operation context management using contextvars.

Every user-initiated action (enroll, reorder, submit, ...) runs inside an
operation context carrying a unique request ID and the user, course and
lesson it concerns. The structlog processors read these values so each log
line emitted during the action is tagged without passing them explicitly.
"""

from contextvars import ContextVar
from typing import Any
from uuid import uuid4


# Context variables for operation tracking
request_id_var: ContextVar[str] = ContextVar("request_id", default="")
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)
course_id_var: ContextVar[str | None] = ContextVar("course_id", default=None)
lesson_id_var: ContextVar[str | None] = ContextVar("lesson_id", default=None)

_VARS: dict[str, ContextVar[Any]] = {
    "request_id": request_id_var,
    "user_id": user_id_var,
    "course_id": course_id_var,
    "lesson_id": lesson_id_var,
}


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid4())


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID for the current context.

    Args:
        request_id: Optional request ID. If not provided, generates a new one.

    Returns:
        The request ID that was set.
    """
    rid = request_id or generate_request_id()
    request_id_var.set(rid)
    return rid


def get_course_id() -> str | None:
    """Get the current course ID."""
    return course_id_var.get()


def get_context() -> dict[str, Any]:
    """Get all non-empty context variables as a dictionary."""
    context: dict[str, Any] = {}
    for name, var in _VARS.items():
        value = var.get()
        if value:
            context[name] = value
    return context


def clear_context() -> None:
    """Clear all context variables."""
    request_id_var.set("")
    user_id_var.set(None)
    course_id_var.set(None)
    lesson_id_var.set(None)


class OperationContext:
    """Context manager for the scope of one user action.

    Usage:
        with OperationContext(course_id=course_id):
            log.info("reordering lessons")  # includes request_id, course_id
    """

    def __init__(
        self,
        request_id: str | None = None,
        user_id: int | str | None = None,
        course_id: int | str | None = None,
        lesson_id: int | str | None = None,
    ) -> None:
        self.request_id = request_id
        self.values = {
            "user_id": user_id,
            "course_id": course_id,
            "lesson_id": lesson_id,
        }
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> "OperationContext":
        """Enter context and set variables."""
        # Nested operations keep the outer request ID
        rid = self.request_id or request_id_var.get() or generate_request_id()
        self._tokens["request_id"] = request_id_var.set(rid)

        for name, value in self.values.items():
            if value is not None:
                self._tokens[name] = _VARS[name].set(str(value))

        return self

    def __exit__(self, *_: object) -> None:
        """Exit context and restore previous values."""
        for name, token in self._tokens.items():
            _VARS[name].reset(token)
        self._tokens.clear()
