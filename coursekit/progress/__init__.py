"""Enrollment gating and student progress tracking."""

from .models import AccessState, Enrollment, Progress, calculate_progress_percent
from .schemas import EnrollmentPayload, MessageResponse, ProgressPayload
from .service import EnrollmentGate, ProgressService


__all__ = [
    "AccessState",
    "Enrollment",
    "EnrollmentGate",
    "EnrollmentPayload",
    "MessageResponse",
    "Progress",
    "ProgressPayload",
    "ProgressService",
    "calculate_progress_percent",
]
