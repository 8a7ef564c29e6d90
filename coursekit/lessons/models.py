"""Lesson entity and ordering helpers."""

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from coursekit.lessons.schemas import LessonPayload
from coursekit.utils import ensure_utc_aware


class Lesson:
    """Lesson or quiz belonging to one course.

    Attributes:
        id: Backend identifier
        course_id: Owning course
        title: Lesson title
        description: Short description shown in listings
        content: Rich text body (None for video/document lessons)
        video_url: Hosted video, if any
        document_url: Attached document, if any
        order: Zero-based position, unique within the course at rest
        is_quiz: Quiz lessons carry questions instead of content
    """

    def __init__(
        self,
        id: int,
        course_id: int,
        title: str,
        description: str = "",
        content: str | None = None,
        video_url: str | None = None,
        document_url: str | None = None,
        is_quiz: bool = False,
        order: int = 0,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id
        self.course_id = course_id
        self.title = title
        self.description = description
        self.content = content
        self.video_url = video_url
        self.document_url = document_url
        self.is_quiz = is_quiz
        self.order = order
        self.created_at = ensure_utc_aware(created_at)
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_payload(cls, payload: LessonPayload) -> "Lesson":
        """Create Lesson from its wire representation."""
        if payload.id is None:
            raise ValueError("Lesson payload has no id")
        return cls(**payload.model_dump())

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> "Lesson":
        """Create Lesson from raw envelope data."""
        return cls.from_payload(LessonPayload.model_validate(data))

    def to_payload(self) -> LessonPayload:
        return LessonPayload(
            id=self.id,
            course_id=self.course_id,
            title=self.title,
            description=self.description,
            content=self.content,
            video_url=self.video_url,
            document_url=self.document_url,
            is_quiz=self.is_quiz,
            order=self.order,
        )

    def copy(self, **changes: Any) -> "Lesson":
        """Return a copy with some attributes replaced."""
        values = {
            "id": self.id,
            "course_id": self.course_id,
            "title": self.title,
            "description": self.description,
            "content": self.content,
            "video_url": self.video_url,
            "document_url": self.document_url,
            "is_quiz": self.is_quiz,
            "order": self.order,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        values.update(changes)
        return Lesson(**values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Lesson):
            return NotImplemented
        return self.to_payload() == other.to_payload()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        kind = "quiz" if self.is_quiz else "lesson"
        return f"<Lesson {self.order}:{self.title} ({kind})>"


def sort_lessons(lessons: Iterable[Lesson]) -> list[Lesson]:
    """Sort by ascending order; equal orders fall back to id."""
    return sorted(lessons, key=lambda lesson: (lesson.order, lesson.id))
