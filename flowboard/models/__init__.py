"""Data models for flowboard."""

from flowboard.models.task import Task, TaskDraft, TaskUpdate, TaskStatus, TaskPriority, STATUS_ORDER
from flowboard.models.undo import UndoAction, CreateAction, UpdateAction, DeleteAction
from flowboard.models.notification import Notification, NotificationLevel
from flowboard.models.user import User

__all__ = [
    "Task",
    "TaskDraft",
    "TaskUpdate",
    "TaskStatus",
    "TaskPriority",
    "STATUS_ORDER",
    "UndoAction",
    "CreateAction",
    "UpdateAction",
    "DeleteAction",
    "Notification",
    "NotificationLevel",
    "User",
]
