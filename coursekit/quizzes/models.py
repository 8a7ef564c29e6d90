"""Quiz question and answer entities.

The same classes back the instructor's editable model and the student's
read-only view. ``id`` stays None until the backend assigns one.
"""

from dataclasses import dataclass, field
from typing import Any

from .schemas import AnswerPayload, QuizQuestionPayload


@dataclass
class Answer:
    """Answer option of a question."""

    answer_text: str = ""
    is_correct: bool = False
    id: int | None = None

    @classmethod
    def from_payload(cls, payload: AnswerPayload) -> "Answer":
        return cls(
            answer_text=payload.answer_text,
            is_correct=payload.is_correct,
            id=payload.id,
        )


@dataclass
class QuizQuestion:
    """Question of a quiz lesson."""

    question_text: str = ""
    points: int = 10
    answers: list[Answer] = field(default_factory=list)
    id: int | None = None
    lesson_id: int | None = None

    @classmethod
    def from_payload(cls, payload: QuizQuestionPayload) -> "QuizQuestion":
        return cls(
            question_text=payload.question_text,
            points=payload.points,
            answers=[Answer.from_payload(a) for a in payload.answers],
            id=payload.id,
            lesson_id=payload.lesson_id,
        )

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> "QuizQuestion":
        return cls.from_payload(QuizQuestionPayload.model_validate(data))

    def to_payload(self, lesson_id: int | None = None) -> QuizQuestionPayload:
        return QuizQuestionPayload(
            id=self.id,
            lesson_id=lesson_id if lesson_id is not None else self.lesson_id,
            question_text=self.question_text,
            points=self.points,
            answers=[
                AnswerPayload(id=a.id, answer_text=a.answer_text, is_correct=a.is_correct)
                for a in self.answers
            ],
        )

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    @property
    def correct_count(self) -> int:
        return sum(1 for a in self.answers if a.is_correct)

    def correct_answer(self) -> Answer | None:
        """The single correct answer, None if there is not exactly one."""
        correct = [a for a in self.answers if a.is_correct]
        return correct[0] if len(correct) == 1 else None

    def has_answer(self, answer_id: int) -> bool:
        return any(a.id == answer_id for a in self.answers)
