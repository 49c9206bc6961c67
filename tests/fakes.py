# tests/fakes.py

from __future__ import annotations

import asyncio
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional

from flowboard.models.notification import Notification, NotificationLevel
from flowboard.models.task import EDITABLE_FIELDS, Task
from flowboard.sync.errors import StoreError
from flowboard.sync.ports import Snapshot

_CLOSED = object()


class FakeSubscription:
    def __init__(self, store: "FakeStore", owner_id: str) -> None:
        self.store = store
        self.owner_id = owner_id
        self.queue: asyncio.Queue = asyncio.Queue()
        self.cancelled = False

    def push(self, item) -> None:
        if not self.cancelled:
            self.queue.put_nowait(item)

    def cancel(self) -> None:
        self.cancelled = True
        self.queue.put_nowait(_CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self) -> Snapshot:
        item = await self.queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        if isinstance(item, Exception):
            raise item
        return item


class FakeStore:
    """
    In-memory DocumentStore spy.

    Counts every call in `calls`, keeps inserted payloads in `inserted`, and
    fails the next call of a kind when `fail_next` names it.
    """

    def __init__(self) -> None:
        self.docs: Dict[str, Task] = {}
        self.calls: Counter = Counter()
        self.inserted: List[Dict[str, Any]] = []
        self.fail_next: set[str] = set()
        self.subscriptions: List[FakeSubscription] = []
        self.revisions: Dict[str, int] = {}
        self._next_id = 0

    def _maybe_fail(self, kind: str) -> None:
        self.calls[kind] += 1
        if kind in self.fail_next:
            self.fail_next.discard(kind)
            raise StoreError(f"{kind} rejected: permission-denied")

    def watch(self, owner_id: str) -> FakeSubscription:
        self.calls["watch"] += 1
        sub = FakeSubscription(self, owner_id)
        self.subscriptions.append(sub)
        sub.push(self.snapshot(owner_id))
        return sub

    def latest_revision(self, owner_id: str) -> int:
        return self.revisions.get(owner_id, 0)

    def snapshot(self, owner_id: str) -> Snapshot:
        tasks = sorted((t for t in self.docs.values() if t.owner_id == owner_id), key=lambda t: t.order)
        return Snapshot(revision=self.latest_revision(owner_id), tasks=tasks)

    def publish(self, owner_id: str) -> None:
        self.revisions[owner_id] = self.latest_revision(owner_id) + 1
        for sub in self.subscriptions:
            if sub.owner_id == owner_id:
                sub.push(self.snapshot(owner_id))

    def break_subscriptions(self, error: Exception) -> None:
        for sub in self.subscriptions:
            sub.push(error)

    def seed(self, task: Task) -> None:
        self.docs[task.id] = task

    async def insert(self, fields: Dict[str, Any]) -> str:
        self._maybe_fail("insert")
        self.inserted.append(dict(fields))
        self._next_id += 1
        task_id = f"doc-{self._next_id}"
        now = datetime.utcnow()
        data = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
        self.docs[task_id] = Task(id=task_id, owner_id=fields["owner_id"], created_at=now, updated_at=now, **data)
        self.publish(fields["owner_id"])
        return task_id

    async def merge(self, task_id: str, fields: Dict[str, Any]) -> None:
        self._maybe_fail("merge")
        current = self.docs.get(task_id)
        if current is None:
            raise StoreError(f"not-found: {task_id}")
        data = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
        self.docs[task_id] = Task(**{**current.model_dump(), **data, "updated_at": datetime.utcnow()})
        self.publish(current.owner_id)

    async def delete(self, task_id: str) -> None:
        self._maybe_fail("delete")
        current = self.docs.pop(task_id, None)
        if current is not None:
            self.publish(current.owner_id)

    @property
    def write_calls(self) -> int:
        return self.calls["insert"] + self.calls["merge"] + self.calls["delete"]


class FakeNotifier:
    """Collects notifications in memory."""

    def __init__(self) -> None:
        self.sent: List[Notification] = []

    def notify(
        self,
        message: str,
        level: NotificationLevel = NotificationLevel.INFO,
        *,
        retry: bool = False,
        undo: bool = False,
    ) -> Notification:
        notification = Notification(message=message, level=level, retry=retry, undo=undo)
        self.sent.append(notification)
        return notification

    @property
    def messages(self) -> List[str]:
        return [n.message for n in self.sent]

    @property
    def last(self) -> Optional[Notification]:
        return self.sent[-1] if self.sent else None
