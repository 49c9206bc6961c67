"""Single-slot undo buffer for flowboard.

Only the most recent mutation can be reversed. Recording a new action
overwrites whatever the slot held before.
"""

import logging
from enum import Enum
from typing import Optional

from flowboard.models.notification import NotificationLevel
from flowboard.models.undo import CreateAction, DeleteAction, UndoAction, UpdateAction
from flowboard.sync.connectivity import Connectivity
from flowboard.sync.ports import DocumentStore, Notifier

logger = logging.getLogger(__name__)


class UndoOutcome(str, Enum):
    """Result of an undo request."""
    NOTHING = "nothing"
    OFFLINE = "offline"
    REVERTED = "reverted"
    FAILED = "failed"


class UndoBuffer:
    """Holds at most one undo action and reverses it against the store."""

    def __init__(self, store: DocumentStore, connectivity: Connectivity, notifier: Notifier):
        self._store = store
        self._connectivity = connectivity
        self._notifier = notifier
        self._slot: Optional[UndoAction] = None

    @property
    def pending(self) -> Optional[UndoAction]:
        return self._slot

    def record(self, action: UndoAction) -> None:
        """Replace the slot with `action`."""
        self._slot = action
        logger.debug(f"Recorded undo action: {action.kind}")

    def clear(self) -> None:
        self._slot = None

    async def undo(self) -> UndoOutcome:
        """Reverse the recorded action.

        The slot is emptied before the reversal starts. A failed reversal is
        reported and the action is not put back.
        """
        if self._slot is None:
            self._notifier.notify("Nothing to undo", NotificationLevel.INFO)
            return UndoOutcome.NOTHING

        if not self._connectivity.online:
            self._notifier.notify("Cannot undo while offline", NotificationLevel.WARNING)
            return UndoOutcome.OFFLINE

        action = self._slot
        self._slot = None

        try:
            message = await self._reverse(action)
        except Exception as e:
            logger.error(f"Error performing undo ({action.kind}): {type(e).__name__}: {str(e)}")
            self._notifier.notify(f"Error undoing action: {e}", NotificationLevel.ERROR, retry=True)
            return UndoOutcome.FAILED

        self._notifier.notify(message, NotificationLevel.INFO)
        return UndoOutcome.REVERTED

    async def _reverse(self, action: UndoAction) -> str:
        if isinstance(action, CreateAction):
            await self._store.delete(action.task_id)
            return "Undo: Task removed"

        if isinstance(action, UpdateAction):
            await self._store.merge(action.task_id, action.previous.editable_fields())
            return "Undo: Changes reverted"

        if isinstance(action, DeleteAction):
            parent_fields = action.task.editable_fields()
            parent_fields["owner_id"] = action.task.owner_id
            new_parent_id = await self._store.insert(parent_fields)

            # Re-created subtasks point at the parent's new id
            for subtask in action.subtasks:
                fields = subtask.editable_fields()
                fields["owner_id"] = subtask.owner_id
                fields["parent_id"] = new_parent_id
                await self._store.insert(fields)
            return "Undo: Task restored"

        raise ValueError(f"Unknown undo action: {action!r}")
