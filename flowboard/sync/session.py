"""Realtime sync session for flowboard.

A session subscribes to one owner's tasks, swaps every pushed snapshot into
the application state, and performs create/update/delete against the
document store. There is no optimistic local mutation: a write becomes
visible only when the store echoes it back through the subscription.

Failures never escape an operation. They are logged, surfaced as a
notification and returned inside a MutationResult.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from flowboard.app.state import AppState
from flowboard.engine.ordering import now_ms
from flowboard.models.notification import NotificationLevel
from flowboard.models.task import Task, TaskDraft, TaskUpdate
from flowboard.models.undo import CreateAction, DeleteAction, UpdateAction
from flowboard.sync.connectivity import Connectivity
from flowboard.sync.errors import MutationResult, NotSignedIn, OfflineRejected, RemoteFailure
from flowboard.sync.ports import DocumentStore, Notifier, Snapshot, Subscription
from flowboard.sync.undo import UndoBuffer

logger = logging.getLogger(__name__)

ChangeListener = Callable[[Tuple[Task, ...]], None]

DEFAULT_SETTLE_TIMEOUT = 5.0


class SyncSession:
    """Keeps an AppState's task collection in step with the document store."""

    def __init__(
        self,
        store: DocumentStore,
        state: AppState,
        undo: UndoBuffer,
        connectivity: Connectivity,
        notifier: Notifier,
        settle_timeout: float = DEFAULT_SETTLE_TIMEOUT,
    ):
        self._store = store
        self._state = state
        self._undo = undo
        self._connectivity = connectivity
        self._notifier = notifier
        self._settle_timeout = settle_timeout

        self._owner_id: Optional[str] = None
        self._subscription: Optional[Subscription] = None
        self._consumer: Optional[asyncio.Task] = None
        self._listeners: List[ChangeListener] = []
        self._applied_revision = -1
        self._applied = asyncio.Condition()

    @property
    def owner_id(self) -> Optional[str]:
        return self._owner_id

    @property
    def active(self) -> bool:
        return self._owner_id is not None

    def on_change(self, listener: ChangeListener) -> None:
        """Call `listener` with the new collection after every applied snapshot."""
        self._listeners.append(listener)

    async def start(self, owner_id: str) -> None:
        """Subscribe to `owner_id`'s tasks, replacing any earlier subscription."""
        await self.stop()

        self._owner_id = owner_id
        self._applied_revision = -1
        self._subscription = self._store.watch(owner_id)
        self._consumer = asyncio.create_task(self._consume(self._subscription))
        logger.info(f"Sync session started for {owner_id}")

    async def stop(self) -> None:
        """Cancel the subscription and clear the local collection."""
        subscription, consumer = self._subscription, self._consumer
        self._subscription = None
        self._consumer = None

        if subscription is not None:
            subscription.cancel()
        if consumer is not None:
            consumer.cancel()
            try:
                await consumer
            except asyncio.CancelledError:
                pass

        if self._owner_id is not None:
            logger.info(f"Sync session stopped for {self._owner_id}")
        self._owner_id = None
        self._undo.clear()
        self._state.replace_tasks(())

    async def _consume(self, subscription: Subscription) -> None:
        try:
            async for snapshot in subscription:
                await self._apply(snapshot)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error loading tasks: {type(e).__name__}: {str(e)}")
            self._notifier.notify(f"Error loading tasks: {e}", NotificationLevel.ERROR)

    async def _apply(self, snapshot: Snapshot) -> None:
        self._state.replace_tasks(snapshot.tasks)
        logger.debug(f"Applied snapshot r{snapshot.revision} with {len(snapshot.tasks)} tasks")

        for listener in list(self._listeners):
            try:
                listener(self._state.tasks)
            except Exception as e:
                logger.error(f"Change listener failed: {type(e).__name__}: {str(e)}")

        async with self._applied:
            self._applied_revision = snapshot.revision
            self._applied.notify_all()

    async def settle(self, timeout: Optional[float] = None) -> bool:
        """Wait until every snapshot the store has emitted so far is applied.

        Returns:
            False if the wait timed out (or there is no session), True otherwise
        """
        if self._owner_id is None:
            return False

        target = self._store.latest_revision(self._owner_id)
        try:
            async with self._applied:
                await asyncio.wait_for(
                    self._applied.wait_for(lambda: self._applied_revision >= target),
                    timeout if timeout is not None else self._settle_timeout,
                )
        except asyncio.TimeoutError:
            logger.warning(f"Timed out waiting for store revision {target}")
            return False
        return True

    def _guard(self, verb: str) -> Optional[MutationResult]:
        if not self._connectivity.online:
            message = f"Cannot {verb} task while offline"
            logger.warning(message)
            self._notifier.notify(message, NotificationLevel.WARNING)
            return MutationResult.failure(OfflineRejected(message))
        if self._owner_id is None:
            message = f"Sign in to {verb} tasks"
            logger.warning(message)
            self._notifier.notify(message, NotificationLevel.WARNING)
            return MutationResult.failure(NotSignedIn(message))
        return None

    def _remote_failure(self, gerund: str, error: Exception) -> MutationResult:
        logger.error(f"Error {gerund} task: {type(error).__name__}: {str(error)}")
        message = f"Error {gerund} task: {error}"
        self._notifier.notify(message, NotificationLevel.ERROR, retry=True)
        return MutationResult.failure(RemoteFailure(message))

    async def create(self, draft: TaskDraft) -> MutationResult:
        """Insert a new task owned by the session's user."""
        rejected = self._guard("create")
        if rejected is not None:
            return rejected

        fields = draft.model_dump(exclude={"order"})
        fields["owner_id"] = self._owner_id
        fields["order"] = draft.order if draft.order is not None else now_ms()

        try:
            task_id = await self._store.insert(fields)
        except Exception as e:
            return self._remote_failure("creating", e)

        self._undo.record(CreateAction(task_id=task_id))
        self._notifier.notify("Task created successfully", NotificationLevel.SUCCESS, undo=True)
        return MutationResult.success(task_id)

    async def update(self, task_id: str, fields: Union[TaskUpdate, Dict[str, Any]]) -> MutationResult:
        """Merge `fields` into an existing task.

        The undo record holds the task as it was last pushed; an update to a
        task the session has not seen yet is not undoable.
        """
        rejected = self._guard("update")
        if rejected is not None:
            return rejected

        changes = fields.changes() if isinstance(fields, TaskUpdate) else dict(fields)
        previous = self._state.find_task(task_id)

        try:
            await self._store.merge(task_id, changes)
        except Exception as e:
            return self._remote_failure("updating", e)

        if previous is not None:
            self._undo.record(UpdateAction(task_id=task_id, previous=previous))
        self._notifier.notify("Task updated", NotificationLevel.SUCCESS, undo=previous is not None)
        return MutationResult.success(task_id)

    async def delete(self, task_id: str) -> MutationResult:
        """Delete a task and its subtasks, subtasks first."""
        rejected = self._guard("delete")
        if rejected is not None:
            return rejected

        task = self._state.find_task(task_id)
        subtasks = self._state.subtasks_of(task_id)

        try:
            for subtask in subtasks:
                await self._store.delete(subtask.id)
            await self._store.delete(task_id)
        except Exception as e:
            return self._remote_failure("deleting", e)

        if task is not None:
            self._undo.record(DeleteAction(task=task, subtasks=subtasks))
        self._notifier.notify("Task deleted", NotificationLevel.SUCCESS, undo=task is not None)
        return MutationResult.success(task_id)

    async def renumber(self, assignments: Sequence[Tuple[str, float]]) -> MutationResult:
        """Write new order keys for a whole column. Not undoable."""
        rejected = self._guard("update")
        if rejected is not None:
            return rejected

        try:
            for task_id, order in assignments:
                await self._store.merge(task_id, {"order": order})
        except Exception as e:
            return self._remote_failure("updating", e)

        logger.info(f"Renumbered {len(assignments)} tasks")
        return MutationResult.success()
