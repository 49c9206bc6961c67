"""Request/response models for the flowboard HTTP API."""

from datetime import date, time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from flowboard.app.state import ViewName
from flowboard.models.notification import Notification
from flowboard.models.task import Task, TaskPriority, TaskStatus
from flowboard.models.user import User


class SignUpRequest(BaseModel):
    email: str = Field(..., description="Account email")
    password: str = Field(..., description="Plain-text password (at least 6 characters)")
    display_name: Optional[str] = Field(None, description="Optional display name")


class LoginRequest(BaseModel):
    email: str
    password: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class AuthResponse(BaseModel):
    """Response model for sign-up and login."""
    access_token: str
    token_type: str = "bearer"
    user: User


class TaskCreateRequest(BaseModel):
    """Task editor payload for a new task."""

    model_config = ConfigDict(use_enum_values=True)

    text: str = Field(..., description="Task title")
    description: str = ""
    status: TaskStatus = TaskStatus.BACKLOG
    priority: TaskPriority = TaskPriority.NORMAL
    tags: List[str] = Field(default_factory=list)
    due_date: Optional[date] = None
    due_time: Optional[time] = None
    parent_id: Optional[str] = None
    order: Optional[float] = None


class QuickAddRequest(BaseModel):
    text: str = Field(..., description='Free text, e.g. "Call Jake tomorrow 3pm !high #work"')
    day: Optional[date] = Field(None, description="Calendar day to force as the due date")


class MoveRequest(BaseModel):
    """Drop position reported by the board."""

    model_config = ConfigDict(use_enum_values=True)

    status: TaskStatus
    index: int = Field(..., ge=0, description="Position in the destination column, excluding the moved task")


class SubtaskRequest(BaseModel):
    text: Optional[str] = None


class SubtaskToggleRequest(BaseModel):
    done: bool


class ConnectivityRequest(BaseModel):
    online: bool


class StateUpdateRequest(BaseModel):
    """Ambient view changes; omitted fields are left alone."""

    model_config = ConfigDict(use_enum_values=True)

    current_view: Optional[ViewName] = None
    status_filter: Optional[str] = None
    priority_filter: Optional[str] = None
    selected_task_id: Optional[str] = None


class MutationResponse(BaseModel):
    """A write that the store has echoed back."""
    task_id: Optional[str] = None
    task: Optional[Task] = Field(None, description="Task as pushed by the store (None after a delete)")


class UndoResponse(BaseModel):
    outcome: str
    notification: Optional[Notification] = None
