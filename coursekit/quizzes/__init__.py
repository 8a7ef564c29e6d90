"""Quiz authoring, persistence and scoring."""

from .authoring import QuizAuthoringModel
from .models import Answer, QuizQuestion
from .schemas import AnswerPayload, QuizQuestionPayload, QuizResult
from .scoring import QuizAttempt, QuizState, calculate_score
from .service import QuizEditor, fetch_questions


__all__ = [
    "Answer",
    "AnswerPayload",
    "QuizAttempt",
    "QuizAuthoringModel",
    "QuizEditor",
    "QuizQuestion",
    "QuizQuestionPayload",
    "QuizResult",
    "QuizState",
    "calculate_score",
    "fetch_questions",
]
