"""
Activity - the unit of saga orchestration.

An Activity bundles a forward action (transaction) and its undo
(compensation) over one external resource. Concrete activities own:
- an Input (frozen dataclass, bound when the catalog is built)
- an Output (mutable dataclass, zero valued until the transaction succeeds)

Outputs record whether this run created the resource, so compensations
never undo resources that already existed.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from revrepl.errors import OperationCancelledError


@dataclass
class ActivityContext:
    """
    Execution context shared by every activity of one saga run.

    Callers cancel a running saga through cancel(); activities call
    raise_if_cancelled() before each blocking external call.
    """
    run_id: str
    cancel_event: threading.Event = field(default_factory=threading.Event)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self) -> None:
        self.cancel_event.set()

    def raise_if_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise OperationCancelledError(f"run {self.run_id} was cancelled")


class Activity(ABC):
    """Abstract base class for saga activities."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def transaction(self, ctx: ActivityContext) -> None:
        """
        Perform the forward action.

        Must be safe to re-run when the resource already exists in the
        desired state. Raises on failure.
        """
        pass

    @abstractmethod
    def compensation(self, ctx: ActivityContext) -> None:
        """Undo the effects of a successful transaction. Raises on failure."""
        pass

    def __repr__(self) -> str:
        return f"{self.name}()"
