"""Local realtime document store for flowboard.

SQL-backed stand-in for the hosted document store: it persists task
documents through TaskRepository and fans a fresh, ordered snapshot out to
every live subscription of the affected owner after each write.

All methods must be called from the event loop thread that consumes the
subscriptions.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from flowboard.database.repository import TaskRepository
from flowboard.sync.errors import StoreError
from flowboard.sync.ports import Snapshot

logger = logging.getLogger(__name__)

_CLOSED = object()


class LocalSubscription:
    """Queue-backed subscription handle; iterate it to receive snapshots."""

    def __init__(self, store: "LocalDocumentStore", owner_id: str):
        self._store = store
        self.owner_id = owner_id
        self._queue: asyncio.Queue = asyncio.Queue()
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def publish(self, snapshot: Snapshot) -> None:
        if not self._cancelled:
            self._queue.put_nowait(snapshot)

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._store._unregister(self)
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> "LocalSubscription":
        return self

    async def __anext__(self) -> Snapshot:
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item


class LocalDocumentStore:
    """Task document store over a SQLAlchemy session factory."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory
        self._subscriptions: Dict[str, List[LocalSubscription]] = {}
        self._revisions: Dict[str, int] = {}

    def watch(self, owner_id: str) -> LocalSubscription:
        """Open a live query for an owner; the current result set is delivered first."""
        subscription = LocalSubscription(self, owner_id)
        self._subscriptions.setdefault(owner_id, []).append(subscription)
        subscription.publish(self._snapshot(owner_id))
        logger.debug(f"Opened subscription for {owner_id}")
        return subscription

    def latest_revision(self, owner_id: str) -> int:
        return self._revisions.get(owner_id, 0)

    async def insert(self, fields: Dict[str, Any]) -> str:
        owner_id = fields.get("owner_id")
        if not owner_id:
            raise StoreError("permission-denied: documents must carry an owner_id")
        try:
            with self._session_factory() as db:
                task = TaskRepository(db).insert(owner_id, fields)
        except Exception as e:
            raise StoreError(f"Failed to insert task: {e}") from e
        self._publish(owner_id)
        return task.id

    async def merge(self, task_id: str, fields: Dict[str, Any]) -> None:
        try:
            with self._session_factory() as db:
                task = TaskRepository(db).merge(task_id, fields)
        except ValueError as e:
            raise StoreError(f"not-found: {e}") from e
        except Exception as e:
            raise StoreError(f"Failed to update task {task_id}: {e}") from e
        self._publish(task.owner_id)

    async def delete(self, task_id: str) -> None:
        try:
            with self._session_factory() as db:
                owner_id = TaskRepository(db).delete(task_id)
        except Exception as e:
            raise StoreError(f"Failed to delete task {task_id}: {e}") from e
        # Deleting a missing document is not an error
        if owner_id is not None:
            self._publish(owner_id)

    def _snapshot(self, owner_id: str) -> Snapshot:
        with self._session_factory() as db:
            tasks = TaskRepository(db).list_for_owner(owner_id)
        return Snapshot(revision=self.latest_revision(owner_id), tasks=tasks)

    def _publish(self, owner_id: str) -> None:
        self._revisions[owner_id] = self.latest_revision(owner_id) + 1
        subscriptions = self._subscriptions.get(owner_id)
        if not subscriptions:
            return
        snapshot = self._snapshot(owner_id)
        for subscription in list(subscriptions):
            subscription.publish(snapshot)

    def _unregister(self, subscription: LocalSubscription) -> None:
        subscriptions: Optional[List[LocalSubscription]] = self._subscriptions.get(subscription.owner_id)
        if subscriptions and subscription in subscriptions:
            subscriptions.remove(subscription)
