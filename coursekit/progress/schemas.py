"""Pydantic schemas for enrollment and progress tracking.

Wire models for:
- Lesson progress records
- Course enrollments (with nested progress)
- Generic action results
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ProgressPayload(BaseModel):
    """Progress resource: ``{id, enrollmentId, lessonId, isCompleted, completedAt, quizScore}``."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    id: int | None = None
    enrollment_id: int | None = None
    lesson_id: int
    is_completed: bool = False
    completed_at: datetime | None = None
    quiz_score: int | None = Field(default=None, ge=0, le=100)


class EnrollmentPayload(BaseModel):
    """Enrollment resource with its progress rows."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    id: int | None = None
    student_id: int | None = None
    course_id: int
    enrolled_at: datetime | None = None
    is_completed: bool = False
    completed_at: datetime | None = None
    final_grade: int | None = None
    progress: list[ProgressPayload] = Field(default_factory=list)


# ==============================================================================
# Generic Response
# ==============================================================================


class MessageResponse(BaseModel):
    """Generic action result shown to the user."""

    message: str
    success: bool = True
