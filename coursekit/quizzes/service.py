"""Quiz persistence service layer.

Business logic for:
- Loading a quiz's questions into an editable model
- Saving questions one by one or as a batch (create vs update by id)
- Deleting persisted questions
- Creating/updating the quiz lesson itself
"""

import structlog

from coursekit.config.settings import Settings, get_settings
from coursekit.core.client import BackendClient
from coursekit.core.context import OperationContext
from coursekit.core.exceptions import BackendError, QuestionLimitError, ValidationError
from coursekit.lessons.models import Lesson
from coursekit.lessons.schemas import LessonDraft, LessonPatch
from coursekit.lessons.service import LessonSequencer, validate_lesson_fields

from .authoring import QuizAuthoringModel
from .models import QuizQuestion


logger = structlog.get_logger(__name__)


async def fetch_questions(client: BackendClient, lesson_id: int) -> list[QuizQuestion]:
    """Fetch the stored questions of a quiz lesson."""
    data = await client.get(
        f"/api/Quiz/lessons/{lesson_id}/questions",
        fallback="Failed to fetch quiz questions",
    )
    return [QuizQuestion.from_data(item) for item in data or []]


class QuizEditor:
    """Instructor-side editor binding a QuizAuthoringModel to the backend.

    A question without an id is created; one with an id is updated. Ids
    returned by a create are written back into the model, so saving the
    same question again updates it instead of creating a duplicate.
    """

    def __init__(
        self,
        client: BackendClient,
        sequencer: LessonSequencer,
        lesson_id: int | None = None,
        settings: Settings | None = None,
    ):
        self.client = client
        self.sequencer = sequencer
        self.lesson_id = lesson_id
        self.settings = settings or get_settings()
        self.model = QuizAuthoringModel(settings=self.settings)
        if lesson_id is None:
            self.model.add_question()

    async def load(self, lesson_id: int | None = None) -> QuizAuthoringModel:
        """Load stored questions; an empty quiz starts with one blank question."""
        lesson_id = lesson_id if lesson_id is not None else self.lesson_id
        if lesson_id is None:
            raise ValidationError("No quiz selected", "quiz_required")

        with OperationContext(lesson_id=lesson_id):
            questions = await fetch_questions(self.client, lesson_id)
            self.lesson_id = lesson_id
            self.model = QuizAuthoringModel(questions, settings=self.settings)
            if not questions:
                self.model.add_question()
            logger.debug("Quiz loaded", questions=len(questions))
            return self.model

    def _require_lesson(self) -> int:
        if self.lesson_id is None:
            raise ValidationError(
                "Save the quiz before saving its questions", "quiz_required"
            )
        return self.lesson_id

    async def _persist(self, index: int) -> QuizQuestion:
        lesson_id = self._require_lesson()
        question = self.model.questions[index]
        payload = question.to_payload(lesson_id)

        if question.is_persisted:
            body = payload.model_dump(by_alias=True, mode="json")
            data = await self.client.put(
                f"/api/Quiz/questions/{question.id}",
                body,
                fallback="Failed to update question",
            )
            if isinstance(data, dict) and data.get("id") is not None:
                self.model.assign_ids(index, QuizQuestion.from_data(data))
            logger.info("Question updated", question_id=question.id)
            return question

        body = payload.model_dump(
            by_alias=True,
            mode="json",
            exclude={"id": True, "answers": {"__all__": {"id"}}},
        )
        data = await self.client.post(
            f"/api/Quiz/lessons/{lesson_id}/questions",
            body,
            fallback="Failed to add question",
        )
        if not isinstance(data, dict) or data.get("id") is None:
            raise BackendError("Failed to add question")

        self.model.assign_ids(index, QuizQuestion.from_data(data))
        logger.info("Question created", question_id=question.id)
        return question

    async def save_question(self, index: int) -> QuizQuestion:
        """Validate and persist one question.

        Raises:
            QuizValidationError: If the question fails the gate.
            BackendError: If the backend refused it.
            TransportError: If the request could not be completed.
        """
        self.model.validate_question(index)
        with OperationContext(lesson_id=self.lesson_id):
            return await self._persist(index)

    async def save_all(self) -> list[QuizQuestion]:
        """Validate the whole quiz, then persist each question in order.

        Stops at the first failure. Questions saved before it keep their
        ids, so retrying updates them.
        """
        self.model.validate()
        self._require_lesson()
        with OperationContext(lesson_id=self.lesson_id):
            saved = []
            for index in range(len(self.model)):
                try:
                    saved.append(await self._persist(index))
                except BackendError as e:
                    logger.warning(
                        "Saving quiz stopped", question=index + 1, error=e.message
                    )
                    raise BackendError(
                        f"Question {index + 1}: {e.message}", e.code, e.status_code
                    ) from e
            return saved

    async def delete_question(self, index: int) -> QuizQuestion:
        """Remove a question, deleting it on the backend when persisted.

        Raises:
            QuestionLimitError: If it is the only question.
            BackendError: If the backend refused; the model is unchanged.
        """
        question = self.model.questions[index]
        if len(self.model) <= 1:
            raise QuestionLimitError

        if question.is_persisted:
            with OperationContext(lesson_id=self.lesson_id):
                await self.client.delete(
                    f"/api/Quiz/questions/{question.id}",
                    fallback="Failed to delete question",
                )
                logger.info("Question deleted", question_id=question.id)
        return self.model.remove_question(index)

    async def save_quiz(self, title: str, description: str) -> Lesson:
        """Create or update the quiz lesson, then save every question.

        Raises:
            ValidationError: If title/description are missing or a question
                fails the gate. Nothing is sent in that case.
        """
        validate_lesson_fields(title, description)
        self.model.validate()

        if self.lesson_id is None:
            lesson = await self.sequencer.create(
                LessonDraft(
                    course_id=self.sequencer.course_id,
                    title=title,
                    description=description,
                    document_url="",
                    is_quiz=True,
                )
            )
            self.lesson_id = lesson.id
        else:
            lesson = await self.sequencer.update(
                self.lesson_id,
                LessonPatch(title=title, description=description, is_quiz=True),
            )

        await self.save_all()
        return lesson
