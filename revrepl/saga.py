"""
Saga orchestrator - runs activities in order with compensating rollback.

Execution flow:
1. For each activity, in order:
   a. Stop if the context was cancelled
   b. Run its transaction
   c. Record an ActivityOutcome
2. On the first failure:
   a. Do not run any later activity
   b. Run compensation for the failing activity (if its transaction started)
      and every completed activity, in strict reverse order
   c. Raise SagaExecutionError carrying the original cause and every
      compensation failure

Activities run strictly sequentially since later activities consume outputs
of earlier ones. Nothing is retried here; re-running the whole saga is safe
because every activity treats an already existing resource as success.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional, Sequence

from revrepl.activity import Activity, ActivityContext
from revrepl.errors import CompensationError, SagaExecutionError


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class ActivityStatus(str, Enum):
    """Status of an activity within a saga run."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    COMPENSATED = "compensated"
    COMPENSATION_FAILED = "compensation_failed"


@dataclass
class ActivityOutcome:
    """
    What happened to a single activity.

    Attributes:
        index: 0-based position in the saga
        name: Activity name
        status: See ActivityStatus
        started_at / completed_at: Transaction timestamps
        error: Error message if the transaction or compensation failed
    """
    index: int
    name: str
    status: ActivityStatus = ActivityStatus.PENDING
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def duration_ms(self) -> Optional[int]:
        """Calculate execution duration in milliseconds if both timestamps present."""
        if self.started_at and self.completed_at:
            delta = self.completed_at - self.started_at
            return int(delta.total_seconds() * 1000)
        return None

    def to_dict(self) -> dict:
        result = {"index": self.index, "name": self.name, "status": self.status.value}
        if self.started_at is not None:
            result["started_at"] = self.started_at.isoformat()
        if self.completed_at is not None:
            result["completed_at"] = self.completed_at.isoformat()
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass
class SagaResult:
    """Result of a successful saga run."""
    outcomes: list[ActivityOutcome]

    @property
    def success(self) -> bool:
        return all(o.status == ActivityStatus.COMPLETED for o in self.outcomes)


class Saga:
    """
    An ordered sequence of activities executed as one logical operation.

    The saga depends only on Activity.transaction / Activity.compensation,
    never on concrete activity types.
    """

    def __init__(self, activities: Iterable[Activity]):
        self.activities: list[Activity] = list(activities)
        self.outcomes = [
            ActivityOutcome(index=i, name=a.name) for i, a in enumerate(self.activities)
        ]
        self._executed = False

    def execute(self, ctx: ActivityContext) -> SagaResult:
        """
        Run every activity in order.

        Returns:
            SagaResult with one COMPLETED outcome per activity

        Raises:
            SagaExecutionError: If a transaction fails (after rollback)
            RuntimeError: If the saga was already executed
        """
        if self._executed:
            raise RuntimeError("saga already executed; build a new saga to run again")
        self._executed = True

        for i, activity in enumerate(self.activities):
            outcome = self.outcomes[i]
            outcome.started_at = _utcnow()
            logger.debug(f"Executing activity #{i + 1} ({activity.name})")
            started = False
            try:
                ctx.raise_if_cancelled()
                started = True
                activity.transaction(ctx)
            except Exception as e:
                outcome.completed_at = _utcnow()
                outcome.status = ActivityStatus.FAILED
                outcome.error = str(e)
                logger.error(f"Activity #{i + 1} ({activity.name}) failed: {e}")
                # A started transaction may have created its resource before failing.
                first = i if started else i - 1
                compensation_errors = self._compensate(ctx, first, failed_index=i)
                raise SagaExecutionError(
                    i,
                    activity.name,
                    e,
                    compensation_errors=compensation_errors,
                    outcomes=self.outcomes,
                ) from e
            outcome.completed_at = _utcnow()
            outcome.status = ActivityStatus.COMPLETED
            logger.info(f"Activity #{i + 1} ({activity.name}) completed")

        return SagaResult(outcomes=self.outcomes)

    def _compensate(
        self, ctx: ActivityContext, first: int, failed_index: int
    ) -> list[CompensationError]:
        """
        Compensate activities [0, first] in reverse order, collecting failures.

        The failing activity keeps its FAILED status unless its own
        compensation fails; activity outputs gate what is actually undone.
        """
        errors: list[CompensationError] = []
        for i in range(first, -1, -1):
            activity = self.activities[i]
            outcome = self.outcomes[i]
            logger.info(f"Compensating activity #{i + 1} ({activity.name})")
            try:
                activity.compensation(ctx)
            except Exception as e:
                outcome.status = ActivityStatus.COMPENSATION_FAILED
                outcome.error = str(e)
                logger.error(f"Compensation of activity #{i + 1} ({activity.name}) failed: {e}")
                errors.append(CompensationError(i, activity.name, e))
                continue
            if i != failed_index:
                outcome.status = ActivityStatus.COMPENSATED
        return errors


def execute_saga(ctx: ActivityContext, activities: Sequence[Activity]) -> SagaResult:
    """Convenience wrapper: build a Saga and execute it."""
    return Saga(activities).execute(ctx)
