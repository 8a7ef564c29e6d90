"""Course catalog service layer.

Business logic for:
- Browsing published courses
- Single course lookup (cached per service instance)
- Client-side search and category/level filtering
- Instructor course listings
"""

from collections.abc import Iterable

import structlog

from coursekit.auth.permissions import CurrentUser, Role
from coursekit.catalog.models import Course
from coursekit.catalog.schemas import CatalogFacets
from coursekit.core.client import BackendClient
from coursekit.core.exceptions import NotFoundError


logger = structlog.get_logger(__name__)


class CourseNotFoundError(NotFoundError):
    """Course not found."""

    def __init__(self, message: str = "Course not found"):
        super().__init__(message, status_code=404)


def filter_courses(
    courses: Iterable[Course],
    search: str | None = None,
    category: str | None = None,
    level: str | None = None,
) -> list[Course]:
    """Filter courses by search term, category and level.

    Search is a case-insensitive substring match on title and description.
    Category and level must match exactly when given.
    """
    term = search.strip().lower() if search else ""
    result = []
    for course in courses:
        if term and term not in course.title.lower() and (
            term not in (course.description or "").lower()
        ):
            continue
        if category and course.category != category:
            continue
        if level and course.level != level:
            continue
        result.append(course)
    return result


def facets(courses: Iterable[Course]) -> CatalogFacets:
    """Collect the distinct categories and levels of a course list."""
    courses = list(courses)
    return CatalogFacets(
        categories=sorted({c.category for c in courses if c.category}),
        levels=sorted({c.level for c in courses if c.level}),
    )


class CatalogService:
    """Read access to course records."""

    def __init__(self, client: BackendClient):
        self.client = client
        self._cache: dict[int, Course] = {}

    async def list_courses(self, published_only: bool = True) -> list[Course]:
        """List courses; drafts are hidden unless ``published_only`` is False."""
        data = await self.client.get("/api/Courses", fallback="Failed to fetch courses")
        courses = [Course.from_data(item) for item in data or []]
        for course in courses:
            self._cache[course.id] = course
        if published_only:
            courses = [c for c in courses if c.is_published]
        return courses

    async def get_course(self, course_id: int, refresh: bool = False) -> Course:
        """Get course by ID.

        Raises:
            CourseNotFoundError: If the backend has no such course.
            TransportError: If the request could not be completed.
        """
        if not refresh and course_id in self._cache:
            return self._cache[course_id]

        try:
            data = await self.client.get(
                f"/api/Courses/{course_id}",
                fallback="Failed to fetch course details",
            )
        except NotFoundError as e:
            raise CourseNotFoundError(e.message) from e
        if not data:
            raise CourseNotFoundError

        course = Course.from_data(data)
        self._cache[course.id] = course
        return course

    async def search(
        self,
        search: str | None = None,
        category: str | None = None,
        level: str | None = None,
    ) -> list[Course]:
        """Search published courses."""
        courses = await self.list_courses()
        return filter_courses(courses, search=search, category=category, level=level)

    async def instructor_courses(self, user: CurrentUser) -> list[Course]:
        """List every course (drafts included) owned by an instructor."""
        if user.role != Role.INSTRUCTOR:
            return []
        courses = await self.list_courses(published_only=False)
        owned = [c for c in courses if c.instructor_id == user.id]
        logger.debug("Listed instructor courses", user_id=user.id, count=len(owned))
        return owned
