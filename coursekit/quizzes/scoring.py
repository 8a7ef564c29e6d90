"""Quiz scoring and completion for students.

A ``QuizAttempt`` follows one (enrollment, quiz lesson) pair through
NOT_STARTED -> IN_PROGRESS -> COMPLETED. COMPLETED is terminal: submitting
again returns the recorded result without contacting the backend.

The backend computes the recorded score; ``calculate_score`` exists for
previews and must not be used to record anything.
"""

from collections.abc import Iterable, Mapping
from enum import Enum

import structlog

from coursekit.config.settings import Settings, get_settings
from coursekit.core.client import BackendClient
from coursekit.core.context import OperationContext
from coursekit.core.exceptions import (
    BackendError,
    CourseKitError,
    QuizCompletedError,
    UnansweredQuestionsError,
    ValidationError,
)
from coursekit.progress.models import Progress
from coursekit.progress.service import ProgressService
from coursekit.utils import percent_of

from .models import QuizQuestion
from .schemas import QuizResult
from .service import fetch_questions


logger = structlog.get_logger(__name__)


class QuizState(str, Enum):
    """Lifecycle of a quiz attempt."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def calculate_score(
    questions: Iterable[QuizQuestion], answers: Mapping[int, int | None]
) -> int:
    """Percentage of points earned, rounded half up.

    A question earns its points when the selected answer is its single
    correct answer. Credit is weighted by points, not question count.
    """
    total = 0
    earned = 0
    for question in questions:
        total += question.points
        correct = question.correct_answer()
        selected = answers.get(question.id) if question.id is not None else None
        if correct is not None and selected is not None and selected == correct.id:
            earned += question.points
    return percent_of(earned, total)


class QuizAttempt:
    """Student-side quiz session for one lesson."""

    def __init__(
        self,
        client: BackendClient,
        lesson_id: int,
        progress: ProgressService | None = None,
        settings: Settings | None = None,
    ):
        self.client = client
        self.lesson_id = lesson_id
        self.progress = progress or ProgressService(client)
        self.settings = settings or get_settings()

        self.state = QuizState.NOT_STARTED
        self.questions: list[QuizQuestion] = []
        self.selected: dict[int, int] = {}
        self.result: QuizResult | None = None
        self._opened = False

    @property
    def total_points(self) -> int:
        return sum(q.points for q in self.questions)

    @property
    def unanswered_count(self) -> int:
        return sum(1 for q in self.questions if self.selected.get(q.id) is None)

    def _completed_result(self, progress: Progress, score: int | None) -> QuizResult:
        return QuizResult(
            lesson_id=self.lesson_id,
            score=progress.quiz_score if progress.quiz_score is not None else score,
            completed_at=progress.completed_at,
        )

    async def open(self) -> QuizState:
        """Load the attempt.

        A completed quiz short-circuits to its stored score and completion
        time; its questions are not fetched.

        Raises:
            BackendError: If the questions cannot be fetched.
            TransportError: If the request could not be completed.
        """
        with OperationContext(lesson_id=self.lesson_id):
            try:
                progress = await self.progress.get_lesson_progress(self.lesson_id)
            except CourseKitError as e:
                # Progress is advisory here; the quiz stays usable
                logger.warning("Could not fetch quiz progress", error=e.message)
                progress = None

            if progress is not None and progress.is_completed:
                self.state = QuizState.COMPLETED
                self.result = self._completed_result(progress, None).model_copy(
                    update={"already_completed": True}
                )
                self._opened = True
                logger.info("Quiz already completed", score=self.result.score)
                return self.state

            self.questions = await fetch_questions(self.client, self.lesson_id)
            if not self.questions:
                raise BackendError("No questions found for this quiz")
            self._opened = True
            return self.state

    def select_answer(self, question_id: int, answer_id: int) -> None:
        """Record the student's choice for a question.

        Raises:
            QuizCompletedError: If the quiz is completed.
            ValidationError: If the question or answer is unknown.
        """
        if self.state == QuizState.COMPLETED:
            raise QuizCompletedError
        question = next((q for q in self.questions if q.id == question_id), None)
        if question is None:
            raise ValidationError(f"Unknown question {question_id}", "unknown_question")
        if not question.has_answer(answer_id):
            raise ValidationError(
                f"Answer {answer_id} does not belong to question {question_id}",
                "unknown_answer",
            )
        self.selected[question_id] = answer_id
        self.state = QuizState.IN_PROGRESS

    def preview_score(self) -> int:
        """Locally computed score of the current selection (display only)."""
        return calculate_score(self.questions, self.selected)

    async def submit(self, answers: Mapping[int, int | None] | None = None) -> QuizResult:
        """Submit the attempt and record completion.

        Args:
            answers: Question id -> selected answer id. Replaces the current
                selection when given; questions missing from it count as
                unanswered.

        Returns:
            The recorded result. Once completed, every call returns the same
            result without contacting the backend. Once scored but not yet
            completed, later calls keep the score and only retry completion.

        Raises:
            UnansweredQuestionsError: If any question is unanswered.
            ValidationError: If an answer does not belong to its question.
            BackendError: If the backend refused the submission.
            TransportError: If the request could not be completed.
        """
        if not self._opened:
            await self.open()

        if self.state == QuizState.COMPLETED and self.result is not None:
            logger.info("Quiz already completed, returning recorded result")
            return self.result.model_copy(update={"already_completed": True})

        if self.result is not None:
            # Already scored; only completion is outstanding
            with OperationContext(lesson_id=self.lesson_id):
                logger.info("Quiz already scored, retrying completion")
                return await self._finish(self.result.score)

        if answers is not None:
            selection = {q: a for q, a in answers.items() if a is not None}
            previous = dict(self.selected)
            self.selected = {}
            try:
                for question_id, answer_id in selection.items():
                    self.select_answer(question_id, answer_id)
            except ValidationError:
                self.selected = previous
                raise

        unanswered = self.unanswered_count
        if unanswered:
            raise UnansweredQuestionsError(unanswered)

        with OperationContext(lesson_id=self.lesson_id):
            body = {str(q): a for q, a in self.selected.items()}
            data = await self.client.post(
                f"/api/Quiz/lessons/{self.lesson_id}/submit",
                body,
                fallback="Failed to submit quiz",
            )
            try:
                score = int(data or 0)
            except (TypeError, ValueError) as e:
                logger.error("Unexpected quiz score", data=data)
                raise BackendError("Failed to submit quiz") from e
            logger.info("Quiz scored", score=score)
            return await self._finish(score)

    async def _finish(self, score: int) -> QuizResult:
        """Record completion for a scored attempt and store the result."""
        progress = await self._record_completion()
        if progress is not None and progress.is_completed:
            self.state = QuizState.COMPLETED
            self.result = self._completed_result(progress, score)
        else:
            logger.error("Quiz scored but completion not recorded", score=score)
            self.result = QuizResult(
                lesson_id=self.lesson_id,
                score=score,
                completion_confirmed=False,
            )
        return self.result

    async def _record_completion(self) -> Progress | None:
        """Mark the lesson completed, retrying, then read back stored truth."""
        attempts = self.settings.completion_retry_attempts
        for attempt in range(1, attempts + 1):
            try:
                progress = await self.progress.mark_lesson_completed(self.lesson_id)
            except CourseKitError as e:
                logger.warning(
                    "Marking quiz completed failed",
                    attempt=attempt,
                    attempts=attempts,
                    error=e.message,
                )
                continue
            if progress.is_completed:
                return progress

        try:
            return await self.progress.get_lesson_progress(self.lesson_id)
        except CourseKitError as e:
            logger.error("Could not refetch quiz progress", error=e.message)
            return None
