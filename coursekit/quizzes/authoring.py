"""Editable in-memory model of one quiz's questions.

Invariants kept by every operation:
- a quiz keeps at least one question
- every question keeps between ``quiz_min_answers`` and ``quiz_max_answers``
  answers (2 and 10 by default)
- at most one answer per question is correct; removing the correct answer
  marks the first remaining answer correct

``validate`` is the gate run before anything is persisted.
"""

import structlog

from coursekit.config.settings import Settings, get_settings
from coursekit.core.exceptions import (
    AnswerLimitError,
    QuestionLimitError,
    QuizValidationError,
    ValidationError,
)

from .models import Answer, QuizQuestion


logger = structlog.get_logger(__name__)


class QuizAuthoringModel:
    """Questions being edited for one quiz lesson."""

    def __init__(
        self,
        questions: list[QuizQuestion] | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.questions: list[QuizQuestion] = list(questions or [])
        self.current_index = 0 if self.questions else -1

    def __len__(self) -> int:
        return len(self.questions)

    @property
    def current(self) -> QuizQuestion | None:
        if 0 <= self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    @property
    def total_points(self) -> int:
        return sum(q.points for q in self.questions)

    def _question(self, index: int) -> QuizQuestion:
        if not 0 <= index < len(self.questions):
            raise IndexError(f"No question at index {index}")
        return self.questions[index]

    def select(self, index: int) -> QuizQuestion:
        question = self._question(index)
        self.current_index = index
        return question

    # ==========================================================================
    # Questions
    # ==========================================================================

    def new_question(self) -> QuizQuestion:
        """Blank question: empty answers, the first one correct."""
        answers = [Answer() for _ in range(self.settings.quiz_default_answer_count)]
        answers[0].is_correct = True
        return QuizQuestion(points=self.settings.quiz_default_points, answers=answers)

    def add_question(self) -> QuizQuestion:
        """Append a blank question and make it current."""
        question = self.new_question()
        self.questions.append(question)
        self.current_index = len(self.questions) - 1
        return question

    def remove_question(self, index: int) -> QuizQuestion:
        """Remove a question.

        Raises:
            QuestionLimitError: If it is the only question left.
        """
        self._question(index)
        if len(self.questions) <= 1:
            raise QuestionLimitError

        removed = self.questions.pop(index)
        if self.current_index >= len(self.questions):
            self.current_index = len(self.questions) - 1
        elif self.current_index > index:
            self.current_index -= 1
        return removed

    def set_question_text(self, index: int, text: str) -> None:
        self._question(index).question_text = text

    def set_points(self, index: int, points: int) -> None:
        """Set question points.

        Raises:
            ValidationError: If points is not a positive integer.
        """
        if isinstance(points, bool) or not isinstance(points, int) or points <= 0:
            raise ValidationError(
                f"Question {index + 1} points must be a positive integer",
                "invalid_points",
            )
        self._question(index).points = points

    # ==========================================================================
    # Answers
    # ==========================================================================

    def add_answer(self, question_index: int) -> Answer:
        """Append an empty, incorrect answer.

        Raises:
            AnswerLimitError: If the question already has the maximum.
        """
        question = self._question(question_index)
        maximum = self.settings.quiz_max_answers
        if len(question.answers) >= maximum:
            raise AnswerLimitError(f"Maximum {maximum} answers allowed")

        answer = Answer()
        question.answers.append(answer)
        return answer

    def remove_answer(self, question_index: int, answer_index: int) -> Answer:
        """Remove an answer, repairing the correct-answer invariant.

        Raises:
            AnswerLimitError: If the question already has the minimum.
        """
        question = self._question(question_index)
        minimum = self.settings.quiz_min_answers
        if len(question.answers) <= minimum:
            raise AnswerLimitError(f"Minimum {minimum} answers required")

        removed = question.answers.pop(answer_index)
        if removed.is_correct:
            question.answers[0].is_correct = True
            logger.debug(
                "Correct answer removed, first answer marked correct",
                question=question_index + 1,
            )
        return removed

    def set_answer_text(self, question_index: int, answer_index: int, text: str) -> None:
        self._question(question_index).answers[answer_index].answer_text = text

    def set_correct_answer(self, question_index: int, answer_index: int) -> None:
        """Mark one answer correct and all its siblings incorrect."""
        question = self._question(question_index)
        if not 0 <= answer_index < len(question.answers):
            raise IndexError(f"No answer at index {answer_index}")
        for i, answer in enumerate(question.answers):
            answer.is_correct = i == answer_index

    # ==========================================================================
    # Validation & persistence support
    # ==========================================================================

    @staticmethod
    def _check_text(question: QuizQuestion, position: int) -> None:
        if not question.question_text.strip():
            raise QuizValidationError(
                f"Question {position} has no text", position, "question_text_required"
            )

    @staticmethod
    def _check_answers(question: QuizQuestion, position: int) -> None:
        if any(not a.answer_text.strip() for a in question.answers):
            raise QuizValidationError(
                f"Question {position} has empty answers", position, "answer_text_required"
            )

    @staticmethod
    def _check_correct(question: QuizQuestion, position: int) -> None:
        if question.correct_count == 0:
            raise QuizValidationError(
                f"Question {position} has no correct answer selected",
                position,
                "correct_answer_required",
            )
        if question.correct_count > 1:
            raise QuizValidationError(
                f"Question {position} has more than one correct answer selected",
                position,
                "multiple_correct_answers",
            )

    def validate_question(self, index: int) -> None:
        """Check one question; positions in messages are 1-based.

        Raises:
            QuizValidationError: On the first failed check.
        """
        question = self._question(index)
        for check in (self._check_text, self._check_answers, self._check_correct):
            check(question, index + 1)

    def validate(self) -> None:
        """Run the pre-persistence gate over every question.

        Questions are checked in order; each one must pass its text, answer
        and correct-answer checks before the next is looked at. The
        offending question becomes current.

        Raises:
            QuestionLimitError: If there are no questions.
            QuizValidationError: On the first failure.
        """
        if not self.questions:
            raise QuestionLimitError

        for index in range(len(self.questions)):
            try:
                self.validate_question(index)
            except QuizValidationError:
                self.current_index = index
                raise

    def assign_ids(self, index: int, saved: QuizQuestion) -> None:
        """Copy backend-assigned ids onto the edited question.

        Answers are matched by position when the counts agree, otherwise by
        text.
        """
        question = self._question(index)
        question.id = saved.id
        question.lesson_id = saved.lesson_id or question.lesson_id

        if len(saved.answers) == len(question.answers):
            for answer, saved_answer in zip(question.answers, saved.answers, strict=True):
                answer.id = saved_answer.id
            return

        by_text = {a.answer_text: a.id for a in saved.answers}
        for answer in question.answers:
            answer.id = by_text.get(answer.answer_text, answer.id)
