"""Enrollment gate and progress tracking service layer.

Business logic for:
- Lesson content access decisions (fail closed)
- Idempotent enroll / unenroll
- Lesson completion (monotonic)
- Course progress aggregation
"""

from collections.abc import Iterable

import structlog

from coursekit.auth.permissions import CurrentUser, is_course_owner, require_user
from coursekit.catalog.service import CatalogService
from coursekit.core.client import BackendClient
from coursekit.core.context import OperationContext
from coursekit.core.exceptions import CourseKitError, NotFoundError
from coursekit.lessons.models import Lesson

from .models import AccessState, Enrollment, Progress, calculate_progress_percent
from .schemas import MessageResponse


logger = structlog.get_logger(__name__)


# ==============================================================================
# Progress Service
# ==============================================================================


class ProgressService:
    """Per-lesson progress for the calling student."""

    def __init__(self, client: BackendClient):
        self.client = client

    async def get_lesson_progress(self, lesson_id: int) -> Progress | None:
        """Get the progress record of a lesson, None when none exists yet."""
        try:
            data = await self.client.get(
                f"/api/Lessons/{lesson_id}/progress",
                fallback="Failed to fetch lesson progress",
            )
        except NotFoundError:
            return None
        if not data:
            return None
        return Progress.from_data(data)

    async def mark_lesson_completed(self, lesson_id: int) -> Progress:
        """Mark a lesson completed.

        Completion is monotonic: an already completed lesson is returned
        unchanged, so its ``completed_at`` is never rewritten.

        Raises:
            BackendError: If the backend refused the completion.
            TransportError: If the request could not be completed.
        """
        with OperationContext(lesson_id=lesson_id):
            current = await self.get_lesson_progress(lesson_id)
            if current is not None and current.is_completed:
                logger.debug("Lesson already completed")
                return current

            data = await self.client.post(
                f"/api/Lessons/{lesson_id}/complete",
                fallback="Failed to mark lesson as completed",
            )
            if isinstance(data, dict) and data.get("isCompleted"):
                progress = Progress.from_data(data)
            else:
                progress = await self.get_lesson_progress(lesson_id) or Progress(
                    lesson_id=lesson_id
                )

            logger.info("Lesson marked completed", completed=progress.is_completed)
            return progress


# ==============================================================================
# Enrollment Gate
# ==============================================================================


class EnrollmentGate:
    """Decides whether a user may see a course's lesson content."""

    def __init__(
        self,
        client: BackendClient,
        catalog: CatalogService | None = None,
    ):
        self.client = client
        self.catalog = catalog or CatalogService(client)

    async def _is_enrolled(self, course_id: int) -> bool:
        data = await self.client.get(
            f"/api/Courses/{course_id}/enrollment-status",
            fallback="Failed to check enrollment status",
        )
        return bool(data)

    async def has_access(
        self, user: CurrentUser | None, course_id: int
    ) -> AccessState:
        """Resolve lesson visibility for a (user, course) pair.

        The course instructor is always unlocked. Anyone else needs an
        enrollment. Anonymous callers and every failure resolve to LOCKED.
        """
        if user is None:
            return AccessState.LOCKED

        with OperationContext(user_id=user.id, course_id=course_id):
            try:
                course = await self.catalog.get_course(course_id)
                if is_course_owner(user, course):
                    return AccessState.UNLOCKED
                enrolled = await self._is_enrolled(course_id)
            except CourseKitError as e:
                logger.warning("Access check failed, locking", error=e.message)
                return AccessState.LOCKED

        return AccessState.UNLOCKED if enrolled else AccessState.LOCKED

    async def enrollments(self, user: CurrentUser) -> list[Enrollment]:
        """List the user's enrollments with their progress rows."""
        data = await self.client.get(
            "/api/Users/enrollments", fallback="Failed to fetch enrollments"
        )
        enrollments = [Enrollment.from_data(item) for item in data or []]
        return [e for e in enrollments if e.student_id in (None, user.id)]

    async def enrollment_for(
        self, user: CurrentUser, course_id: int
    ) -> Enrollment | None:
        for enrollment in await self.enrollments(user):
            if enrollment.course_id == course_id:
                return enrollment
        return None

    async def enroll(self, user: CurrentUser | None, course_id: int) -> MessageResponse:
        """Enroll the user; enrolling twice never creates a second enrollment.

        Raises:
            AuthenticationRequiredError: If the caller is anonymous.
            BackendError: If the backend refused the enrollment.
            TransportError: If the request could not be completed.
        """
        user = require_user(user)
        with OperationContext(user_id=user.id, course_id=course_id):
            if await self._is_enrolled(course_id):
                logger.info("Already enrolled, skipping")
                return MessageResponse(message="You are already enrolled in this course")

            await self.client.post(
                f"/api/Courses/{course_id}/enroll",
                fallback="Failed to enroll in the course",
            )
            logger.info("Enrolled in course")
            return MessageResponse(message="Successfully enrolled in the course!")

    async def unenroll(
        self, user: CurrentUser | None, course_id: int
    ) -> MessageResponse:
        """Remove the enrollment and its progress rows.

        Unenrolling while not enrolled is reported as an unsuccessful result
        rather than raised.
        """
        user = require_user(user)
        with OperationContext(user_id=user.id, course_id=course_id):
            if not await self._is_enrolled(course_id):
                logger.info("Not enrolled, nothing to remove")
                return MessageResponse(
                    message="You are not enrolled in this course", success=False
                )

            await self.client.post(
                f"/api/Courses/{course_id}/unenroll",
                fallback="Failed to unenroll from course",
            )
            logger.info("Unenrolled from course")
            return MessageResponse(message="Successfully unenrolled from the course")

    async def course_progress_percent(
        self,
        user: CurrentUser,
        course_id: int,
        lessons: Iterable[Lesson] | None = None,
    ) -> int:
        """Percentage (0..100) of the course's lessons the user completed.

        Args:
            user: Enrolled user.
            course_id: Course to aggregate.
            lessons: Current lessons of the course; fetched when omitted.
        """
        with OperationContext(user_id=user.id, course_id=course_id):
            if lessons is None:
                data = await self.client.get(
                    f"/api/Lessons/course/{course_id}",
                    fallback="Failed to fetch lessons",
                )
                lesson_ids = [Lesson.from_data(item).id for item in data or []]
            else:
                lesson_ids = [lesson.id for lesson in lessons]

            if not lesson_ids:
                return 0

            enrollment = await self.enrollment_for(user, course_id)
            if enrollment is None:
                return 0

            return calculate_progress_percent(
                lesson_ids, enrollment.completed_lesson_ids()
            )
