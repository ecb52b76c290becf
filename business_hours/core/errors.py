"""
Error taxonomy for the scheduling engine.

Every error here is recoverable: validation and duplicate errors are fixed by
correcting the input, persistence errors by resyncing state.
"""
from typing import Optional


class SchedulingError(Exception):
    """Base class for all scheduling errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidTimeWindow(SchedulingError):
    pass


class InvalidOrder(InvalidTimeWindow):
    """Opening time is not strictly before closing time."""

    def __init__(self, message: str = "Opening time must be before closing time."):
        super().__init__(message)


class TooShort(InvalidTimeWindow):
    """Window is shorter than the minimum duration."""

    def __init__(self, min_duration_minutes: int):
        super().__init__(f"Operating hours must be at least {min_duration_minutes} minutes.")
        self.min_duration_minutes = min_duration_minutes


class InvalidException(SchedulingError):
    """Exception payload failed validation (reason, date or times)."""


class DuplicateException(SchedulingError):
    def __init__(self, business_id: str, exception_date: str, existing_id: Optional[str] = None):
        super().__init__(
            f"An exception already exists for {exception_date}. Edit or delete it instead."
        )
        self.business_id = business_id
        self.exception_date = exception_date
        self.existing_id = existing_id


class DuplicateEntry(SchedulingError):
    """Weekly hours rows for this business were already written by another caller."""

    def __init__(self, business_id: str):
        super().__init__(f"Weekly hours already exist for business {business_id}")
        self.business_id = business_id


class NotFound(SchedulingError):
    def __init__(self, kind: str, identifier: str):
        super().__init__(f"{kind} {identifier} not found")
        self.kind = kind
        self.identifier = identifier


class PersistenceError(SchedulingError):
    """The store or booking collaborator was unreachable or rejected the call."""
