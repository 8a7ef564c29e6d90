"""Error taxonomy shared by all coursekit services.

- ValidationError: detected on the client, no network call was made
- BackendError: the call completed but the envelope reported failure
- TransportError: the call itself raised or timed out
- PermissionDeniedError: the caller may not perform the action
"""

GENERIC_ERROR_MESSAGE = "An error occurred while contacting the server"


class CourseKitError(Exception):
    """Base coursekit error."""

    def __init__(self, message: str, code: str = "coursekit_error"):
        self.message = message
        self.code = code
        super().__init__(message)


# ==============================================================================
# Validation
# ==============================================================================


class ValidationError(CourseKitError):
    """Client-side validation failed; nothing was sent."""

    def __init__(self, message: str, code: str = "validation_error"):
        super().__init__(message, code)


class QuizValidationError(ValidationError):
    """A quiz question failed the pre-persistence gate.

    ``position`` is the 1-based position of the offending question.
    """

    def __init__(self, message: str, position: int, code: str = "invalid_question"):
        self.position = position
        super().__init__(message, code)


class AnswerLimitError(ValidationError):
    """Answer count would leave the allowed bounds."""

    def __init__(self, message: str):
        super().__init__(message, "answer_limit")


class QuestionLimitError(ValidationError):
    """A quiz must keep at least one question."""

    def __init__(self, message: str = "Quiz must have at least one question"):
        super().__init__(message, "question_limit")


class UnansweredQuestionsError(ValidationError):
    """Quiz submitted with questions left unanswered."""

    def __init__(self, unanswered: int):
        self.unanswered = unanswered
        super().__init__(
            "Please answer all questions before submitting. "
            f"{unanswered} question(s) unanswered.",
            "unanswered_questions",
        )


class QuizCompletedError(ValidationError):
    """The quiz is completed and no longer accepts interaction."""

    def __init__(self, message: str = "This quiz has already been completed"):
        super().__init__(message, "quiz_completed")


# ==============================================================================
# Remote failures
# ==============================================================================


class BackendError(CourseKitError):
    """Backend answered with ``isSuccess=false``."""

    def __init__(
        self,
        message: str,
        code: str = "backend_error",
        status_code: int | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, code)


class NotFoundError(BackendError):
    """Requested resource does not exist."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message, "not_found", status_code)


class TransportError(CourseKitError):
    """The request could not be completed (network failure, timeout, bug)."""

    def __init__(self, message: str = GENERIC_ERROR_MESSAGE):
        super().__init__(message, "transport_error")


# ==============================================================================
# Access
# ==============================================================================


class PermissionDeniedError(CourseKitError):
    """Caller is not allowed to perform this action."""

    def __init__(self, message: str = "You are not allowed to perform this action"):
        super().__init__(message, "permission_denied")


class AuthenticationRequiredError(PermissionDeniedError):
    """Caller has no identity."""

    def __init__(self, message: str = "You need to be logged in"):
        super().__init__(message)
        self.code = "authentication_required"
