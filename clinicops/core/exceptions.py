"""Custom application exceptions.

Every exception carries a stable ``kind`` that callers can branch on and a
human readable ``message``. The HTTP layer renders both.
"""


class AppException(Exception):
    """Base application exception."""

    kind = "AppError"

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    kind = "NotFound"

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class ConflictException(AppException):
    """Conflict exception."""

    kind = "Conflict"

    def __init__(self, message: str = "Conflict"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class ValidationException(AppException):
    """Validation error exception."""

    kind = "ValidationError"

    def __init__(self, message: str = "Validation error"):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422)


# Appointment lifecycle rule violations. None of these are retryable except
# ConcurrentModificationException, which asks the caller to re-read first.


class InvalidTransitionException(ConflictException):
    """Requested status change is not in the transition table."""

    kind = "InvalidTransition"

    def __init__(self, message: str = "Invalid status transition"):
        super().__init__(message)


class ConcurrentModificationException(ConflictException):
    """Appointment changed between read and write."""

    kind = "ConcurrentModificationConflict"

    def __init__(
        self,
        message: str = "Appointment was modified by another request. Reload and retry.",
    ):
        super().__init__(message)


class ReversionBlockedException(ConflictException):
    """Completed appointment already produced a medical record."""

    kind = "ReversionBlockedByDownstreamRecord"

    def __init__(
        self,
        message: str = "Cannot revert a completed appointment that has a medical record",
    ):
        super().__init__(message)


class MissingReasonException(ValidationException):
    """A justification is required for this operation."""

    kind = "MissingReason"

    def __init__(self, message: str = "A reason is required"):
        super().__init__(message)


class DoctorAssignmentNotAllowedException(ConflictException):
    """Doctor is frozen for this appointment."""

    kind = "DoctorAssignmentNotAllowed"

    def __init__(self, message: str = "Doctor assignment is not allowed for this appointment"):
        super().__init__(message)


class ConsultationAlreadyInProgressException(ConflictException):
    """Another consultation for the same service and date is in progress."""

    kind = "ConsultationAlreadyInProgress"

    def __init__(self, message: str = "Another consultation is already in progress"):
        super().__init__(message)
