"""Lesson sequencing service layer.

Business logic for:
- Listing a course's lessons in display order
- Lesson CRUD with client-side validation
- Order swaps with optimistic update and reload on failure
- Previous/next navigation
"""

import asyncio

import structlog

from coursekit.auth.permissions import CurrentUser, require_course_owner
from coursekit.catalog.service import CatalogService
from coursekit.core.client import BackendClient
from coursekit.core.context import OperationContext
from coursekit.core.exceptions import (
    BackendError,
    CourseKitError,
    NotFoundError,
    ValidationError,
)

from .models import Lesson, sort_lessons
from .schemas import LessonDraft, LessonOrderUpdate, LessonPatch


logger = structlog.get_logger(__name__)


class LessonNotFoundError(NotFoundError):
    """Lesson not found."""

    def __init__(self, message: str = "Lesson not found"):
        super().__init__(message, status_code=404)


def validate_lesson_fields(title: str | None, description: str | None) -> None:
    """Ensure title and description are present.

    Raises:
        ValidationError: On the first missing field.
    """
    if not title or not title.strip():
        raise ValidationError("Lesson title is required", "title_required")
    if not description or not description.strip():
        raise ValidationError(
            "Lesson description is required", "description_required"
        )


class LessonSequencer:
    """Ordered lessons of one course, kept in sync with the backend.

    Create, update and delete touch the in-memory list only after the
    backend accepted the change. Reorder is optimistic: the swap is shown
    immediately and the list is reloaded from the backend if either write
    fails.

    When ``user`` is given, mutations are refused locally unless that user
    owns the course.
    """

    def __init__(
        self,
        client: BackendClient,
        course_id: int,
        user: CurrentUser | None = None,
        catalog: CatalogService | None = None,
    ):
        self.client = client
        self.course_id = course_id
        self.user = user
        self.catalog = catalog or CatalogService(client)
        self._lessons: list[Lesson] = []
        self._loaded = False
        self.stale = False

    @property
    def lessons(self) -> list[Lesson]:
        """Snapshot of the current ordered list."""
        return list(self._lessons)

    @property
    def next_order(self) -> int:
        """Order value appended lessons receive."""
        return len(self._lessons)

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def list_lessons(self, course_id: int | None = None) -> list[Lesson]:
        """Fetch lessons sorted by ascending order.

        Fetching this sequencer's own course also refreshes the in-memory list.
        """
        course_id = self.course_id if course_id is None else course_id
        data = await self.client.get(
            f"/api/Lessons/course/{course_id}", fallback="Failed to fetch lessons"
        )
        lessons = sort_lessons(Lesson.from_data(item) for item in data or [])

        if course_id == self.course_id:
            self._lessons = lessons
            self._loaded = True
            self.stale = False
        return list(lessons)

    async def get_lesson(self, lesson_id: int) -> Lesson:
        """Get a lesson, from memory when loaded.

        Raises:
            LessonNotFoundError: If the backend has no such lesson.
        """
        for lesson in self._lessons:
            if lesson.id == lesson_id:
                return lesson
        try:
            data = await self.client.get(
                f"/api/Lessons/{lesson_id}", fallback="Failed to fetch lesson"
            )
        except NotFoundError as e:
            raise LessonNotFoundError(e.message) from e
        if not data:
            raise LessonNotFoundError
        return Lesson.from_data(data)

    def neighbors(self, lesson_id: int) -> tuple[Lesson | None, Lesson | None]:
        """Previous and next lessons around ``lesson_id`` in display order."""
        for index, lesson in enumerate(self._lessons):
            if lesson.id == lesson_id:
                previous = self._lessons[index - 1] if index > 0 else None
                following = (
                    self._lessons[index + 1]
                    if index + 1 < len(self._lessons)
                    else None
                )
                return previous, following
        return None, None

    # ==========================================================================
    # Mutations
    # ==========================================================================

    async def _ensure_loaded(self) -> None:
        if not self._loaded:
            await self.list_lessons()

    async def _ensure_owner(self) -> None:
        if self.user is None:
            return
        course = await self.catalog.get_course(self.course_id)
        require_course_owner(self.user, course)

    def _find(self, lesson_id: int) -> Lesson:
        for lesson in self._lessons:
            if lesson.id == lesson_id:
                return lesson
        raise LessonNotFoundError

    def _replace(self, lesson: Lesson) -> None:
        others = [item for item in self._lessons if item.id != lesson.id]
        self._lessons = sort_lessons([*others, lesson])

    async def create(self, draft: LessonDraft) -> Lesson:
        """Create a lesson; it is appended unless ``draft.order`` is set.

        Raises:
            ValidationError: If title or description is missing.
            BackendError: If the backend refused the lesson.
            TransportError: If the request could not be completed.
        """
        validate_lesson_fields(draft.title, draft.description)

        with OperationContext(course_id=self.course_id):
            await self._ensure_owner()
            await self._ensure_loaded()

            order = draft.order if draft.order is not None else self.next_order
            payload = draft.model_copy(
                update={"course_id": self.course_id, "order": order}
            ).model_dump(by_alias=True, mode="json")

            data = await self.client.post(
                "/api/Lessons", payload, fallback="Failed to create lesson"
            )
            if not isinstance(data, dict) or data.get("id") is None:
                raise BackendError("Failed to create lesson")

            lesson = Lesson.from_data(data)
            self._replace(lesson)
            logger.info(
                "Lesson created",
                lesson_id=lesson.id,
                order=lesson.order,
                is_quiz=lesson.is_quiz,
            )
            return lesson

    async def update(self, lesson_id: int, patch: LessonPatch) -> Lesson:
        """Apply a partial update.

        Raises:
            ValidationError: If the patch blanks the title or description.
            LessonNotFoundError: If the lesson does not exist.
            BackendError: If the backend refused the update.
            TransportError: If the request could not be completed.
        """
        changes = patch.model_dump(exclude_none=True)
        if "title" in changes and not changes["title"].strip():
            raise ValidationError("Lesson title is required", "title_required")
        if "description" in changes and not changes["description"].strip():
            raise ValidationError(
                "Lesson description is required", "description_required"
            )

        with OperationContext(course_id=self.course_id, lesson_id=lesson_id):
            await self._ensure_owner()
            current = await self.get_lesson(lesson_id)
            merged = current.copy(**changes)

            body = merged.to_payload().model_dump(
                by_alias=True, mode="json", exclude={"created_at", "updated_at"}
            )
            data = await self.client.put(
                f"/api/Lessons/{lesson_id}", body, fallback="Failed to update lesson"
            )
            if isinstance(data, dict) and data.get("id") is not None:
                updated = Lesson.from_data(data)
            else:
                updated = merged

            if self._loaded and updated.course_id == self.course_id:
                self._replace(updated)
            logger.info("Lesson updated", fields=sorted(changes))
            return updated

    async def delete(self, lesson_id: int) -> None:
        """Delete a lesson (its quiz questions go with it on the backend).

        Raises:
            BackendError: If the backend refused the deletion.
            TransportError: If the request could not be completed.
        """
        with OperationContext(course_id=self.course_id, lesson_id=lesson_id):
            await self._ensure_owner()
            await self.client.delete(
                f"/api/Lessons/{lesson_id}", fallback="Failed to delete lesson"
            )
            self._lessons = [item for item in self._lessons if item.id != lesson_id]
            logger.info("Lesson deleted")

    async def _write_order(self, lesson_id: int, order: int) -> None:
        await self.client.put(
            f"/api/Lessons/{lesson_id}/order",
            LessonOrderUpdate(order=order).model_dump(),
            fallback="Failed to update lesson order",
        )

    async def reorder(self, moved_id: int, target_id: int) -> None:
        """Swap the order values of two lessons.

        The moved lesson takes the target's order and the target takes the
        moved lesson's former order; no other lesson changes. The swap is
        applied in memory first. If either backend write fails the list is
        reloaded from the backend and the error is raised.

        Raises:
            LessonNotFoundError: If either lesson is not in this course.
            BackendError: If a write failed (after reloading).
            TransportError: If a write could not be completed (after reloading).
        """
        if moved_id == target_id:
            return

        with OperationContext(course_id=self.course_id, lesson_id=moved_id):
            await self._ensure_owner()
            await self._ensure_loaded()

            moved = self._find(moved_id)
            target = self._find(target_id)
            moved_order, target_order = moved.order, target.order

            swapped_orders = {moved_id: target_order, target_id: moved_order}
            snapshot = self._lessons
            self._lessons = sort_lessons(
                lesson.copy(order=swapped_orders[lesson.id])
                if lesson.id in swapped_orders
                else lesson
                for lesson in snapshot
            )

            results = await asyncio.gather(
                self._write_order(moved_id, target_order),
                self._write_order(target_id, moved_order),
                return_exceptions=True,
            )
            failures = [r for r in results if isinstance(r, BaseException)]
            if not failures:
                logger.info(
                    "Lessons swapped",
                    target_id=target_id,
                    moved_order=target_order,
                    target_order=moved_order,
                )
                return

            logger.warning(
                "Lesson order update failed, reloading lessons",
                target_id=target_id,
                failed_writes=len(failures),
            )
            await self._reload_after_failed_swap(snapshot)
            raise failures[0]

    async def _reload_after_failed_swap(self, snapshot: list[Lesson]) -> None:
        try:
            await self.list_lessons()
        except CourseKitError as e:
            # Server state unknown: fall back to the last known list
            logger.error("Reload after failed swap failed", error=e.message)
            self._lessons = snapshot
            self.stale = True
