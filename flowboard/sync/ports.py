"""Ports (interfaces) between the sync core and its collaborators.

The core depends on Protocols instead of concrete implementations, so a
hosted store client and the local SQL-backed store are interchangeable and
tests can substitute spies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Protocol

from flowboard.models.notification import Notification, NotificationLevel
from flowboard.models.task import Task


@dataclass(frozen=True)
class Snapshot:
    """Full, ordered result set of an owner's live query at one store revision."""

    revision: int
    tasks: List[Task] = field(default_factory=list)


class Subscription(Protocol):
    """Cancellable handle yielding full-collection snapshots in emission order."""

    def __aiter__(self) -> AsyncIterator[Snapshot]: ...

    def cancel(self) -> None: ...


class DocumentStore(Protocol):
    """Remote task document store.

    Each call resolves or raises; there are no multi-document transactions.
    """

    def watch(self, owner_id: str) -> Subscription:
        """Live query for `owner_id`'s tasks ordered by `order` ascending.

        The current result set is delivered first, then a fresh one after
        every change.
        """
        ...

    def latest_revision(self, owner_id: str) -> int:
        """Revision of the most recent snapshot emitted for `owner_id`."""
        ...

    async def insert(self, fields: Dict[str, Any]) -> str: ...

    async def merge(self, task_id: str, fields: Dict[str, Any]) -> None: ...

    async def delete(self, task_id: str) -> None: ...


class Notifier(Protocol):
    """Surfaces user-visible status messages."""

    def notify(
        self,
        message: str,
        level: NotificationLevel = NotificationLevel.INFO,
        *,
        retry: bool = False,
        undo: bool = False,
    ) -> Notification: ...
