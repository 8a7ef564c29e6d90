"""Lesson sequencing for courses."""

from .models import Lesson, sort_lessons
from .schemas import LessonDraft, LessonOrderUpdate, LessonPatch, LessonPayload
from .service import LessonNotFoundError, LessonSequencer, validate_lesson_fields


__all__ = [
    "Lesson",
    "LessonDraft",
    "LessonNotFoundError",
    "LessonOrderUpdate",
    "LessonPatch",
    "LessonPayload",
    "LessonSequencer",
    "sort_lessons",
    "validate_lesson_fields",
]
