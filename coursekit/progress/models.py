"""Enrollment and progress entities.

- AccessState: gate decision for a (user, course) pair
- Progress: one completion record per (enrollment, lesson)
- Enrollment: (student, course) pair carrying its progress rows
"""

from collections.abc import Iterable
from datetime import datetime
from enum import Enum
from typing import Any

from coursekit.progress.schemas import EnrollmentPayload, ProgressPayload
from coursekit.utils import ensure_utc_aware, percent_of


class AccessState(str, Enum):
    """Visibility of a course's lesson content."""

    LOCKED = "locked"
    UNLOCKED = "unlocked"


class Progress:
    """Lesson completion record for one enrollment.

    ``is_completed`` only moves from False to True; ``completed_at`` and
    ``quiz_score`` are set together, once, when it does.
    """

    def __init__(
        self,
        lesson_id: int,
        id: int | None = None,
        enrollment_id: int | None = None,
        is_completed: bool = False,
        completed_at: datetime | None = None,
        quiz_score: int | None = None,
    ):
        self.id = id
        self.enrollment_id = enrollment_id
        self.lesson_id = lesson_id
        self.is_completed = is_completed
        self.completed_at = ensure_utc_aware(completed_at)
        self.quiz_score = quiz_score

    @classmethod
    def from_payload(cls, payload: ProgressPayload) -> "Progress":
        return cls(**payload.model_dump())

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> "Progress":
        return cls.from_payload(ProgressPayload.model_validate(data))

    def __repr__(self) -> str:
        state = "completed" if self.is_completed else "open"
        return f"<Progress lesson={self.lesson_id} ({state})>"


class Enrollment:
    """Course enrollment with progress rows."""

    def __init__(
        self,
        course_id: int,
        id: int | None = None,
        student_id: int | None = None,
        enrolled_at: datetime | None = None,
        is_completed: bool = False,
        completed_at: datetime | None = None,
        final_grade: int | None = None,
        progress: list[Progress] | None = None,
    ):
        self.id = id
        self.student_id = student_id
        self.course_id = course_id
        self.enrolled_at = ensure_utc_aware(enrolled_at)
        self.is_completed = is_completed
        self.completed_at = ensure_utc_aware(completed_at)
        self.final_grade = final_grade
        self.progress = progress or []

    @classmethod
    def from_payload(cls, payload: EnrollmentPayload) -> "Enrollment":
        return cls(
            id=payload.id,
            student_id=payload.student_id,
            course_id=payload.course_id,
            enrolled_at=payload.enrolled_at,
            is_completed=payload.is_completed,
            completed_at=payload.completed_at,
            final_grade=payload.final_grade,
            progress=[Progress.from_payload(p) for p in payload.progress],
        )

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> "Enrollment":
        return cls.from_payload(EnrollmentPayload.model_validate(data))

    def completed_lesson_ids(self) -> set[int]:
        return {p.lesson_id for p in self.progress if p.is_completed}

    def __repr__(self) -> str:
        return f"<Enrollment student={self.student_id} course={self.course_id}>"


def calculate_progress_percent(
    lesson_ids: Iterable[int], completed_lesson_ids: Iterable[int]
) -> int:
    """Course completion percentage.

    Only completions of lessons still in the course count; progress rows
    left behind by deleted lessons are ignored. A course without lessons
    reports 0.
    """
    lessons = set(lesson_ids)
    completed = lessons & set(completed_lesson_ids)
    return percent_of(len(completed), len(lessons))
