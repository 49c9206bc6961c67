"""Notification center for flowboard."""

import logging
from collections import deque
from typing import Deque, List

from flowboard.models.constants import NOTIFICATION_HISTORY
from flowboard.models.notification import Notification, NotificationLevel

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    NotificationLevel.SUCCESS.value: logging.INFO,
    NotificationLevel.INFO.value: logging.INFO,
    NotificationLevel.WARNING.value: logging.WARNING,
    NotificationLevel.ERROR.value: logging.ERROR,
}


class NotificationCenter:
    """Keeps the most recent notifications for the presentation layer and logs each one."""

    def __init__(self, history: int = NOTIFICATION_HISTORY):
        self._recent: Deque[Notification] = deque(maxlen=history)

    def notify(
        self,
        message: str,
        level: NotificationLevel = NotificationLevel.INFO,
        *,
        retry: bool = False,
        undo: bool = False,
    ) -> Notification:
        notification = Notification(message=message, level=level, retry=retry, undo=undo)
        logger.log(_LOG_LEVELS.get(notification.level, logging.INFO), message)
        self._recent.append(notification)
        return notification

    @property
    def recent(self) -> List[Notification]:
        """Oldest first."""
        return list(self._recent)
