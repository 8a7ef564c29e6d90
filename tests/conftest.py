"""Shared fixtures: an in-memory course backend speaking the envelope protocol."""

import re
from datetime import UTC, datetime
from typing import Any

import pytest

from coursekit.auth.permissions import CurrentUser, Role
from coursekit.config.settings import Settings
from coursekit.core.client import BackendClient
from coursekit.core.transport import ApiEnvelope
from coursekit.quizzes.models import QuizQuestion
from coursekit.quizzes.scoring import calculate_score


INSTRUCTOR_ID = 1
STUDENT_ID = 2
OTHER_INSTRUCTOR_ID = 3
ADMIN_ID = 4
COURSE_ID = 10


class FakeBackend:
    """In-memory backend implementing the ``Transport`` protocol.

    Records every call in ``calls``. ``fail`` makes a (method, path) pair
    answer with a given envelope or raise a given exception.
    """

    def __init__(self, current_user_id: int = STUDENT_ID):
        self.current_user_id = current_user_id
        self.courses: dict[int, dict[str, Any]] = {}
        self.lessons: dict[int, dict[str, Any]] = {}
        self.questions: dict[int, dict[str, Any]] = {}
        self.enrollments: dict[int, dict[str, Any]] = {}
        self.progress: dict[int, dict[str, Any]] = {}
        self.quiz_scores: dict[int, int] = {}
        self.calls: list[tuple[str, str, Any]] = []
        self._failures: dict[tuple[str, str], list[Any]] = {}
        self._next_id = 100

        self._routes = [
            ("GET", r"/api/Courses", self._list_courses),
            ("GET", r"/api/Courses/(\d+)", self._get_course),
            ("GET", r"/api/Courses/(\d+)/enrollment-status", self._enrollment_status),
            ("POST", r"/api/Courses/(\d+)/enroll", self._enroll),
            ("POST", r"/api/Courses/(\d+)/unenroll", self._unenroll),
            ("GET", r"/api/Users/enrollments", self._list_enrollments),
            ("GET", r"/api/Lessons/course/(\d+)", self._list_lessons),
            ("GET", r"/api/Lessons/(\d+)", self._get_lesson),
            ("POST", r"/api/Lessons", self._create_lesson),
            ("PUT", r"/api/Lessons/(\d+)", self._update_lesson),
            ("DELETE", r"/api/Lessons/(\d+)", self._delete_lesson),
            ("PUT", r"/api/Lessons/(\d+)/order", self._update_order),
            ("GET", r"/api/Lessons/(\d+)/progress", self._get_progress),
            ("POST", r"/api/Lessons/(\d+)/complete", self._complete),
            ("GET", r"/api/Quiz/lessons/(\d+)/questions", self._list_questions),
            ("POST", r"/api/Quiz/lessons/(\d+)/questions", self._create_question),
            ("PUT", r"/api/Quiz/questions/(\d+)", self._update_question),
            ("DELETE", r"/api/Quiz/questions/(\d+)", self._delete_question),
            ("POST", r"/api/Quiz/lessons/(\d+)/submit", self._submit),
        ]

    # ==========================================================================
    # Test helpers
    # ==========================================================================

    def new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def fail(
        self, method: str, path: str, result: ApiEnvelope | Exception, times: int = 0
    ) -> None:
        """Answer ``times`` matching calls (0 = all of them) with ``result``."""
        self._failures[(method, path)] = [result, times]

    def clear_failures(self) -> None:
        self._failures.clear()

    def calls_to(self, method: str, path: str) -> int:
        return sum(1 for m, p, _ in self.calls if m == method and p == path)

    def add_course(
        self,
        course_id: int = COURSE_ID,
        instructor_id: int = INSTRUCTOR_ID,
        title: str = "Python Basics",
        is_published: bool = True,
        **extra: Any,
    ) -> dict[str, Any]:
        course = {
            "id": course_id,
            "title": title,
            "description": extra.pop("description", f"{title} course"),
            "instructorId": instructor_id,
            "isPublished": is_published,
            "price": extra.pop("price", 0),
            **extra,
        }
        self.courses[course_id] = course
        return course

    def add_lesson(
        self,
        title: str,
        order: int,
        course_id: int = COURSE_ID,
        is_quiz: bool = False,
    ) -> dict[str, Any]:
        lesson = {
            "id": self.new_id(),
            "courseId": course_id,
            "title": title,
            "description": f"{title} description",
            "isQuiz": is_quiz,
            "order": order,
        }
        self.lessons[lesson["id"]] = lesson
        return lesson

    def add_question(
        self,
        lesson_id: int,
        text: str,
        answers: list[tuple[str, bool]],
        points: int = 10,
    ) -> dict[str, Any]:
        question = {
            "id": self.new_id(),
            "lessonId": lesson_id,
            "questionText": text,
            "points": points,
            "answers": [
                {"id": self.new_id(), "answerText": a, "isCorrect": c}
                for a, c in answers
            ],
        }
        self.questions[question["id"]] = question
        return question

    def enroll(self, course_id: int = COURSE_ID) -> dict[str, Any]:
        enrollment = {
            "id": self.new_id(),
            "studentId": self.current_user_id,
            "courseId": course_id,
            "enrolledAt": datetime.now(UTC).isoformat(),
        }
        self.enrollments[course_id] = enrollment
        return enrollment

    # ==========================================================================
    # Transport
    # ==========================================================================

    async def request(
        self, method: str, path: str, body: Any | None = None
    ) -> ApiEnvelope:
        self.calls.append((method, path, body))

        failure = self._failures.get((method, path))
        if failure is not None:
            result, remaining = failure
            if remaining == 1:
                del self._failures[(method, path)]
            elif remaining > 1:
                failure[1] = remaining - 1
            if isinstance(result, Exception):
                raise result
            return result

        for route_method, pattern, handler in self._routes:
            if route_method != method:
                continue
            match = re.fullmatch(pattern, path)
            if match:
                args = [int(g) for g in match.groups()]
                return handler(*args, body) if body is not None else handler(*args)
        return ApiEnvelope.fail("Not found", 404)

    # ==========================================================================
    # Courses & enrollments
    # ==========================================================================

    def _list_courses(self) -> ApiEnvelope:
        return ApiEnvelope.ok(list(self.courses.values()))

    def _get_course(self, course_id: int) -> ApiEnvelope:
        course = self.courses.get(course_id)
        if course is None:
            return ApiEnvelope.fail("Course not found", 404)
        return ApiEnvelope.ok(course)

    def _enrollment_status(self, course_id: int) -> ApiEnvelope:
        return ApiEnvelope.ok(course_id in self.enrollments)

    def _enroll(self, course_id: int) -> ApiEnvelope:
        if course_id in self.enrollments:
            return ApiEnvelope.fail("You are already enrolled in this course")
        self.enroll(course_id)
        return ApiEnvelope.ok(None, "Successfully enrolled in the course!")

    def _unenroll(self, course_id: int) -> ApiEnvelope:
        enrollment = self.enrollments.pop(course_id, None)
        if enrollment is None:
            return ApiEnvelope.fail("You are not enrolled in this course")
        self.progress = {
            lesson_id: row
            for lesson_id, row in self.progress.items()
            if row["enrollmentId"] != enrollment["id"]
        }
        return ApiEnvelope.ok(None, "Successfully unenrolled from the course")

    def _list_enrollments(self) -> ApiEnvelope:
        data = []
        for enrollment in self.enrollments.values():
            rows = [
                row
                for row in self.progress.values()
                if row["enrollmentId"] == enrollment["id"]
            ]
            data.append({**enrollment, "progress": rows})
        return ApiEnvelope.ok(data)

    # ==========================================================================
    # Lessons & progress
    # ==========================================================================

    def _list_lessons(self, course_id: int) -> ApiEnvelope:
        # Unordered on purpose; clients sort
        lessons = [
            lesson
            for lesson in self.lessons.values()
            if lesson["courseId"] == course_id
        ]
        return ApiEnvelope.ok(list(reversed(lessons)))

    def _get_lesson(self, lesson_id: int) -> ApiEnvelope:
        lesson = self.lessons.get(lesson_id)
        if lesson is None:
            return ApiEnvelope.fail("Lesson not found", 404)
        return ApiEnvelope.ok(lesson)

    def _create_lesson(self, body: dict[str, Any]) -> ApiEnvelope:
        lesson = {**body, "id": self.new_id()}
        self.lessons[lesson["id"]] = lesson
        return ApiEnvelope.ok(lesson, "Lesson created successfully")

    def _update_lesson(self, lesson_id: int, body: dict[str, Any]) -> ApiEnvelope:
        if lesson_id not in self.lessons:
            return ApiEnvelope.fail("Lesson not found", 404)
        self.lessons[lesson_id] = {**self.lessons[lesson_id], **body, "id": lesson_id}
        return ApiEnvelope.ok(self.lessons[lesson_id])

    def _delete_lesson(self, lesson_id: int) -> ApiEnvelope:
        if self.lessons.pop(lesson_id, None) is None:
            return ApiEnvelope.fail("Lesson not found", 404)
        self.questions = {
            qid: q for qid, q in self.questions.items() if q["lessonId"] != lesson_id
        }
        return ApiEnvelope.ok(None, "Lesson deleted successfully")

    def _update_order(self, lesson_id: int, body: dict[str, Any]) -> ApiEnvelope:
        if lesson_id not in self.lessons:
            return ApiEnvelope.fail("Lesson not found", 404)
        self.lessons[lesson_id]["order"] = body["order"]
        return ApiEnvelope.ok(None)

    def _get_progress(self, lesson_id: int) -> ApiEnvelope:
        return ApiEnvelope.ok(self.progress.get(lesson_id))

    def _complete(self, lesson_id: int) -> ApiEnvelope:
        lesson = self.lessons.get(lesson_id)
        if lesson is None:
            return ApiEnvelope.fail("Lesson not found", 404)
        enrollment = self.enrollments.get(lesson["courseId"])
        if enrollment is None:
            return ApiEnvelope.fail("You are not enrolled in this course")

        row = self.progress.get(lesson_id)
        if row is not None and row["isCompleted"]:
            return ApiEnvelope.ok(row)
        row = {
            "id": self.new_id(),
            "enrollmentId": enrollment["id"],
            "lessonId": lesson_id,
            "isCompleted": True,
            "completedAt": datetime.now(UTC).isoformat(),
            "quizScore": self.quiz_scores.get(lesson_id),
        }
        self.progress[lesson_id] = row
        return ApiEnvelope.ok(row)

    # ==========================================================================
    # Quizzes
    # ==========================================================================

    def _with_answer_ids(self, answers: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return [{**a, "id": a.get("id") or self.new_id()} for a in answers]

    def _list_questions(self, lesson_id: int) -> ApiEnvelope:
        return ApiEnvelope.ok(
            [q for q in self.questions.values() if q["lessonId"] == lesson_id]
        )

    def _create_question(self, lesson_id: int, body: dict[str, Any]) -> ApiEnvelope:
        question = {
            **body,
            "id": self.new_id(),
            "lessonId": lesson_id,
            "answers": self._with_answer_ids(body.get("answers", [])),
        }
        self.questions[question["id"]] = question
        return ApiEnvelope.ok(question)

    def _update_question(self, question_id: int, body: dict[str, Any]) -> ApiEnvelope:
        if question_id not in self.questions:
            return ApiEnvelope.fail("Question not found", 404)
        question = {
            **self.questions[question_id],
            **body,
            "id": question_id,
            "answers": self._with_answer_ids(body.get("answers", [])),
        }
        self.questions[question_id] = question
        return ApiEnvelope.ok(question)

    def _delete_question(self, question_id: int) -> ApiEnvelope:
        if self.questions.pop(question_id, None) is None:
            return ApiEnvelope.fail("Question not found", 404)
        return ApiEnvelope.ok(None)

    def _submit(self, lesson_id: int, body: dict[str, Any]) -> ApiEnvelope:
        questions = [
            QuizQuestion.from_data(q)
            for q in self.questions.values()
            if q["lessonId"] == lesson_id
        ]
        answers = {int(qid): aid for qid, aid in body.items()}
        score = calculate_score(questions, answers)
        self.quiz_scores[lesson_id] = score
        return ApiEnvelope.ok(score)


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def settings() -> Settings:
    """Settings with defaults, independent of the environment."""
    return Settings(_env_file=None, environment="testing")


@pytest.fixture
def backend() -> FakeBackend:
    """Backend with one published course owned by the instructor."""
    fake = FakeBackend()
    fake.add_course()
    return fake


@pytest.fixture
def client(backend: FakeBackend) -> BackendClient:
    return BackendClient(backend)


@pytest.fixture
def instructor() -> CurrentUser:
    return CurrentUser(id=INSTRUCTOR_ID, role=Role.INSTRUCTOR, username="instructor")


@pytest.fixture
def other_instructor() -> CurrentUser:
    return CurrentUser(id=OTHER_INSTRUCTOR_ID, role=Role.INSTRUCTOR)


@pytest.fixture
def student() -> CurrentUser:
    return CurrentUser(id=STUDENT_ID, role=Role.STUDENT, username="student")


@pytest.fixture
def admin() -> CurrentUser:
    return CurrentUser(id=ADMIN_ID, role=Role.ADMIN)
