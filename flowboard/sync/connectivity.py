"""Connectivity tracking for flowboard.

Writes are disabled while offline; nothing is queued for later.
"""

import logging
from typing import Optional

from flowboard.models.notification import NotificationLevel
from flowboard.sync.ports import Notifier

logger = logging.getLogger(__name__)


class Connectivity:
    """Online/offline flag shared by the sync session, undo buffer and UI."""

    def __init__(self, online: bool = True, notifier: Optional[Notifier] = None):
        self._online = online
        self._notifier = notifier

    @property
    def online(self) -> bool:
        return self._online

    def set_online(self, online: bool) -> None:
        """Record a connectivity change and tell the user about it."""
        if online == self._online:
            return
        self._online = online
        logger.info(f"Connectivity changed: {'online' if online else 'offline'}")

        if self._notifier is not None:
            if online:
                self._notifier.notify("You are back online", NotificationLevel.SUCCESS)
            else:
                self._notifier.notify("You are offline. Writes are disabled.", NotificationLevel.WARNING)
