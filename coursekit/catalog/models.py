"""Course catalog entities."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from coursekit.catalog.schemas import CoursePayload
from coursekit.utils import ensure_utc_aware


class Course:
    """Course record owned by exactly one instructor.

    Attributes:
        id: Backend identifier
        title: Course title
        description: Course description
        category: Free-form category label
        level: Difficulty label (e.g. Beginner)
        language: Teaching language
        price: Course price (0 = free)
        is_published: Draft courses are hidden from the public catalog
        instructor_id: Owning instructor
        lesson_count: Number of lessons reported by the backend
        student_count: Number of enrolled students
    """

    def __init__(
        self,
        id: int,
        title: str,
        instructor_id: int,
        description: str | None = None,
        category: str | None = None,
        level: str | None = None,
        language: str | None = None,
        price: Decimal = Decimal(0),
        is_published: bool = False,
        thumbnail_url: str | None = None,
        lesson_count: int = 0,
        student_count: int = 0,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id
        self.title = title.strip()
        self.instructor_id = instructor_id
        self.description = description
        self.category = category
        self.level = level
        self.language = language
        self.price = price
        self.is_published = is_published
        self.thumbnail_url = thumbnail_url
        self.lesson_count = lesson_count
        self.student_count = student_count
        self.created_at = ensure_utc_aware(created_at)
        self.updated_at = ensure_utc_aware(updated_at)

    @property
    def is_free(self) -> bool:
        return self.price == 0

    @classmethod
    def from_payload(cls, payload: CoursePayload) -> "Course":
        """Create Course from its wire representation."""
        return cls(**payload.model_dump())

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> "Course":
        """Create Course from raw envelope data."""
        return cls.from_payload(CoursePayload.model_validate(data))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "instructor_id": self.instructor_id,
            "description": self.description,
            "category": self.category,
            "level": self.level,
            "language": self.language,
            "price": self.price,
            "is_published": self.is_published,
            "thumbnail_url": self.thumbnail_url,
            "lesson_count": self.lesson_count,
            "student_count": self.student_count,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        state = "published" if self.is_published else "draft"
        return f"<Course {self.title} ({state})>"
