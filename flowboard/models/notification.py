"""Notification data model for flowboard."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class NotificationLevel(str, Enum):
    """Notification level enumeration."""
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Notification(BaseModel):
    """A user-visible status message (rendered as a toast by the presentation layer)."""

    model_config = ConfigDict(use_enum_values=True)

    message: str = Field(..., description="Text shown to the user")
    level: NotificationLevel = Field(NotificationLevel.INFO, description="Severity")
    retry: bool = Field(False, description="Offer a reload affordance alongside the message")
    undo: bool = Field(False, description="Offer an undo affordance alongside the message")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="When it was raised")
