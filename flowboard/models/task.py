"""Task data model for flowboard."""

from datetime import date, datetime, time
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskStatus(str, Enum):
    """Board column a task lives in."""
    BACKLOG = "backlog"
    TODAY = "today"
    IN_PROGRESS = "inprogress"
    DONE = "done"


class TaskPriority(str, Enum):
    """Task priority enumeration."""
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


# Board column order, left to right
STATUS_ORDER: List[TaskStatus] = [
    TaskStatus.BACKLOG,
    TaskStatus.TODAY,
    TaskStatus.IN_PROGRESS,
    TaskStatus.DONE,
]

# Fields a user can change; everything else is owned by the store.
EDITABLE_FIELDS = (
    "text",
    "description",
    "status",
    "priority",
    "tags",
    "due_date",
    "due_time",
    "parent_id",
    "order",
)


class Task(BaseModel):
    """Canonical Task model, as echoed back by the document store."""

    model_config = ConfigDict(use_enum_values=True)

    id: str = Field(..., description="Store-assigned document identifier")
    owner_id: str = Field(..., description="User ID who owns this task")
    text: str = Field(..., description="Display title")
    description: str = Field("", description="Optional free text")
    status: TaskStatus = Field(TaskStatus.BACKLOG, description="Board column")
    priority: TaskPriority = Field(TaskPriority.NORMAL, description="Task priority")
    tags: List[str] = Field(default_factory=list, description="Tags in insertion order")
    due_date: Optional[date] = Field(None, description="Due date (no deadline if null)")
    due_time: Optional[time] = Field(None, description="Time of day on the due date")
    parent_id: Optional[str] = Field(None, description="Parent task ID (marks a subtask)")
    order: float = Field(..., description="Sort key within the status column")
    created_at: Optional[datetime] = Field(None, description="Store-assigned creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Store-assigned update timestamp")

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, v):
        return v or ""

    @property
    def is_subtask(self) -> bool:
        return self.parent_id is not None

    @property
    def due_at(self) -> Optional[datetime]:
        """Due date combined with its time of day (midnight when no time is set)."""
        if self.due_date is None:
            return None
        return datetime.combine(self.due_date, self.due_time or time(0, 0))

    def editable_fields(self) -> Dict[str, Any]:
        """Full snapshot of the user-editable fields."""
        return {name: getattr(self, name) for name in EDITABLE_FIELDS}


class TaskDraft(BaseModel):
    """An unsaved task, before the store assigns it an id and timestamps."""

    model_config = ConfigDict(use_enum_values=True)

    text: str = ""
    description: str = ""
    status: TaskStatus = TaskStatus.BACKLOG
    priority: TaskPriority = TaskPriority.NORMAL
    tags: List[str] = Field(default_factory=list)
    due_date: Optional[date] = None
    due_time: Optional[time] = None
    parent_id: Optional[str] = None
    order: Optional[float] = Field(None, description="Defaults to current epoch milliseconds")

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, v):
        return v or ""


class TaskUpdate(BaseModel):
    """Partial set of task fields to merge into an existing document.

    Only fields that were explicitly provided are merged; an explicit None clears a field.
    """

    model_config = ConfigDict(use_enum_values=True)

    text: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    tags: Optional[List[str]] = None
    due_date: Optional[date] = None
    due_time: Optional[time] = None
    parent_id: Optional[str] = None
    order: Optional[float] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)
