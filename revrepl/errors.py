"""
Error classes for revrepl workflow execution.

The taxonomy follows the phases of a create call:
- ValidationError: the request is missing or has a malformed field.
  Raised before any external call, safe to retry after correction.
- LocationLookupError: resolving the Spanner leader location failed.
  Fatal to the call, nothing has been provisioned yet.
- ActivityError: an activity found an external resource in an unexpected
  state (for example a change stream with the wrong options).
- CompensationError / SagaExecutionError: raised by the saga when an
  activity fails. Compensation failures travel alongside the original
  failure, never in place of it.

Error handling contract:
- Errors are exceptions, not values
- Nothing is retried automatically
"""

from typing import Optional


class RevreplError(Exception):
    """Base exception for revrepl."""
    pass


class ValidationError(RevreplError):
    """A job request field is missing or invalid."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class LocationLookupError(RevreplError):
    """Resolving the Spanner leader location failed."""
    pass


class TuningConfigError(RevreplError):
    """A Dataflow tuning config could not be read or parsed."""
    pass


class ActivityError(RevreplError):
    """An activity found an external resource in an unexpected state."""
    pass


class ChangeStreamOptionsError(ActivityError):
    """A change stream exists but its options cannot be used for reverse replication."""

    def __init__(self, change_stream_name: str, message: str):
        self.change_stream_name = change_stream_name
        super().__init__(message)


class OperationCancelledError(RevreplError):
    """The shared activity context was cancelled."""
    pass


class CompensationError(RevreplError):
    """A single compensation failed during saga rollback."""

    def __init__(self, index: int, activity_name: str, cause: Exception):
        self.index = index
        self.activity_name = activity_name
        self.cause = cause
        super().__init__(
            f"failed to compensate activity #{index + 1} ({activity_name}): {cause}"
        )


class SagaExecutionError(RevreplError):
    """
    Raised when an activity transaction fails.

    Attributes:
        index: 0-based position of the failing activity
        position: 1-based position, as shown in the message
        activity_name: Name of the failing activity
        cause: The exception raised by the transaction
        compensation_errors: Rollback failures, in the order they happened
        outcomes: Per-activity ActivityOutcome list of the failed run
    """

    def __init__(
        self,
        index: int,
        activity_name: str,
        cause: Exception,
        compensation_errors: Optional[list[CompensationError]] = None,
        outcomes: Optional[list] = None,
    ):
        self.index = index
        self.activity_name = activity_name
        self.cause = cause
        self.compensation_errors = list(compensation_errors or [])
        self.outcomes = list(outcomes or [])
        message = f"error executing activity #{index + 1} ({activity_name}): {cause}"
        if self.compensation_errors:
            details = "; ".join(str(e) for e in self.compensation_errors)
            message += f" [{len(self.compensation_errors)} compensation error(s): {details}]"
        super().__init__(message)

    @property
    def position(self) -> int:
        return self.index + 1
