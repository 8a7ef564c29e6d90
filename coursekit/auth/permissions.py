"""Caller identity and role checks.

The authentication collaborator hands us a ``CurrentUser`` (or ``None`` for
an anonymous caller). Components receive it explicitly; nothing here reads
ambient session state.

Roles:
- STUDENT: enrolls in courses, consumes lessons, takes quizzes
- INSTRUCTOR: authors and manages own courses
- ADMIN: platform administrator (no implicit course access)
"""

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from coursekit.core.exceptions import AuthenticationRequiredError, PermissionDeniedError


if TYPE_CHECKING:
    from coursekit.catalog.models import Course


class Role(str, Enum):
    """Closed set of caller roles."""

    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


class CurrentUser(BaseModel):
    """Authenticated caller."""

    model_config = ConfigDict(frozen=True)

    id: int
    role: Role
    username: str | None = None


def is_course_owner(user: CurrentUser | None, course: "Course") -> bool:
    """Check if user is the instructor who owns the course."""
    if user is None:
        return False
    if user.role == Role.INSTRUCTOR:
        return course.instructor_id == user.id
    if user.role in (Role.STUDENT, Role.ADMIN):
        return False
    raise AssertionError(f"Unhandled role: {user.role!r}")


def require_user(user: CurrentUser | None) -> CurrentUser:
    """Return the user or raise when the caller is anonymous.

    Raises:
        AuthenticationRequiredError: If user is None.
    """
    if user is None:
        raise AuthenticationRequiredError
    return user


def require_course_owner(user: CurrentUser | None, course: "Course") -> CurrentUser:
    """Ensure the caller owns the course.

    Raises:
        AuthenticationRequiredError: If user is None.
        PermissionDeniedError: If user is not the course instructor.
    """
    user = require_user(user)
    if not is_course_owner(user, course):
        raise PermissionDeniedError("Only the course instructor can modify its lessons")
    return user
