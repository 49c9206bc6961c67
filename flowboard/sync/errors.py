"""Failure taxonomy and operation results for flowboard.

Failures never propagate out of a sync operation; they are caught at the
operation boundary, reported as a notification, and handed back to the
caller inside a MutationResult.
"""

from dataclasses import dataclass
from typing import Optional


class StoreError(Exception):
    """Raised by a document store adapter when a call is rejected."""


class TaskError(Exception):
    """Base class for failures reported back from task operations."""

    retry = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class OfflineRejected(TaskError):
    """A mutation was attempted with no connectivity; it never reached the store."""


class RemoteFailure(TaskError):
    """The store call was made but rejected (permission, not-found, network, timeout)."""

    # Write errors come with a reload affordance
    retry = True


class InvalidTask(TaskError):
    """The task failed client-side validation (e.g. an empty title)."""


class NotSignedIn(TaskError):
    """A mutation was attempted with no active sync session."""


@dataclass(frozen=True)
class MutationResult:
    """Outcome of create/update/delete: success (with the task id) or a failure."""

    ok: bool
    task_id: Optional[str] = None
    error: Optional[TaskError] = None

    @classmethod
    def success(cls, task_id: Optional[str] = None) -> "MutationResult":
        return cls(ok=True, task_id=task_id)

    @classmethod
    def failure(cls, error: TaskError) -> "MutationResult":
        return cls(ok=False, error=error)
