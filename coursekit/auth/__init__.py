from coursekit.auth.permissions import (
    CurrentUser,
    Role,
    is_course_owner,
    require_course_owner,
    require_user,
)


__all__ = [
    "CurrentUser",
    "Role",
    "is_course_owner",
    "require_course_owner",
    "require_user",
]
