"""coursekit: async client for course progression.

Lesson sequencing, enrollment gating, quiz authoring and quiz scoring
against a course-delivery backend.
"""

from coursekit.auth import CurrentUser, Role
from coursekit.catalog import CatalogService, Course
from coursekit.core import BackendClient, HttpTransport, configure_structlog
from coursekit.lessons import Lesson, LessonDraft, LessonPatch, LessonSequencer
from coursekit.progress import AccessState, EnrollmentGate, ProgressService
from coursekit.quizzes import QuizAttempt, QuizAuthoringModel, QuizEditor


__version__ = "0.1.0"

__all__ = [
    "AccessState",
    "BackendClient",
    "CatalogService",
    "Course",
    "CurrentUser",
    "EnrollmentGate",
    "HttpTransport",
    "Lesson",
    "LessonDraft",
    "LessonPatch",
    "LessonSequencer",
    "ProgressService",
    "QuizAttempt",
    "QuizAuthoringModel",
    "QuizEditor",
    "Role",
    "__version__",
    "configure_structlog",
]
