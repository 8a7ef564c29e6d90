"""Pydantic schemas for lesson management.

Request and wire models for:
- Lesson resources as exchanged with the backend
- Lesson creation drafts and partial update patches
- Order updates
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


_WIRE_CONFIG = ConfigDict(
    alias_generator=to_camel, populate_by_name=True, extra="ignore"
)


class LessonPayload(BaseModel):
    """Lesson resource: ``{id, title, description, content, documentUrl, videoUrl, isQuiz, order, courseId}``."""

    model_config = _WIRE_CONFIG

    id: int | None = None
    course_id: int
    title: str
    description: str = ""
    content: str | None = None
    video_url: str | None = None
    document_url: str | None = None
    is_quiz: bool = False
    order: int = Field(default=0, ge=0)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class LessonDraft(BaseModel):
    """New lesson or quiz. ``order`` defaults to the end of the course."""

    model_config = _WIRE_CONFIG

    course_id: int
    title: str = ""
    description: str = ""
    content: str | None = None
    video_url: str | None = None
    document_url: str | None = None
    is_quiz: bool = False
    order: int | None = Field(default=None, ge=0)


class LessonPatch(BaseModel):
    """Partial lesson update; ``None`` fields are left as they are."""

    model_config = _WIRE_CONFIG

    title: str | None = None
    description: str | None = None
    content: str | None = None
    video_url: str | None = None
    document_url: str | None = None
    is_quiz: bool | None = None
    order: int | None = Field(default=None, ge=0)


class LessonOrderUpdate(BaseModel):
    """Body of ``PUT /api/Lessons/{id}/order``."""

    order: int = Field(..., ge=0)
