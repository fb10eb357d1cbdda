class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NoActiveSession(ValidationError):
    """Raised when an operation needs a live session and none is resolved."""


class ScheduleUnavailable(DomainError):
    """Raised when the instructor's schedule cannot be fetched."""


class RosterUnavailable(DomainError):
    """Raised when the roster source fails (an empty roster is not an error)."""


class EventChannelDisconnected(DomainError):
    """Raised by a device feed on transport loss; retried by the poller."""


class DuplicateSubmission(DomainError):
    """Attendance for this session/date/submitter already exists.

    Recoverable: resubmit with explicit overwrite consent.
    """

    def __init__(self, message: str, *, existing_count: int = 0):
        super().__init__(message)
        self.existing_count = existing_count


class WriteFailure(DomainError):
    """Raised when the record store rejects a batch; live state is kept."""


class InvalidBinding(DomainError):
    """Weight reading from a sensor that is not bound to any student."""
