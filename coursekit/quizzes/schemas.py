"""Pydantic schemas for quizzes.

Wire models for:
- Quiz questions and their answers
- Quiz submission results
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


_WIRE_CONFIG = ConfigDict(
    alias_generator=to_camel, populate_by_name=True, extra="ignore"
)


class AnswerPayload(BaseModel):
    """Answer resource: ``{id, answerText, isCorrect}``."""

    model_config = _WIRE_CONFIG

    id: int | None = None
    answer_text: str = ""
    is_correct: bool = False


class QuizQuestionPayload(BaseModel):
    """Question resource: ``{id, lessonId, questionText, points, answers}``."""

    model_config = _WIRE_CONFIG

    id: int | None = None
    lesson_id: int | None = None
    question_text: str = ""
    points: int = Field(default=10, gt=0)
    answers: list[AnswerPayload] = Field(default_factory=list)


class QuizResult(BaseModel):
    """Outcome of a quiz submission as shown to the student."""

    lesson_id: int
    score: int | None = Field(default=None, ge=0, le=100)
    completed_at: datetime | None = None
    already_completed: bool = Field(
        default=False, description="Result was recorded by an earlier submission"
    )
    completion_confirmed: bool = Field(
        default=True, description="Backend confirmed the lesson as completed"
    )
