"""Explicit application state for flowboard.

One AppState is owned by each controller. The task collection is an
immutable tuple that is swapped wholesale whenever the store pushes a new
snapshot; it is never edited in place.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from flowboard.models.constants import FILTER_ALL
from flowboard.models.notification import Notification
from flowboard.models.task import Task
from flowboard.models.user import User


class ViewName(str, Enum):
    """Top-level view currently shown."""
    KANBAN = "kanban"
    LIST = "list"
    CALENDAR = "calendar"


@dataclass
class ListFilters:
    """List view filters; "all" disables a filter."""

    status: str = FILTER_ALL
    priority: str = FILTER_ALL


@dataclass
class AppState:
    user: Optional[User] = None
    tasks: Tuple[Task, ...] = ()
    current_view: ViewName = ViewName.KANBAN
    filters: ListFilters = field(default_factory=ListFilters)
    selected_task_id: Optional[str] = None
    # Quick-add input is waiting for a new task
    composing: bool = False
    calendar_year: int = field(default_factory=lambda: date.today().year)
    calendar_month: int = field(default_factory=lambda: date.today().month)

    @property
    def signed_in(self) -> bool:
        return self.user is not None

    def replace_tasks(self, tasks: Iterable[Task]) -> None:
        """Swap in a new task collection."""
        self.tasks = tuple(tasks)
        if self.selected_task_id is not None and self.find_task(self.selected_task_id) is None:
            self.selected_task_id = None

    def find_task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def subtasks_of(self, parent_id: str) -> List[Task]:
        return [t for t in self.tasks if t.parent_id == parent_id]

    def reset(self) -> None:
        """Drop everything tied to the signed-in user."""
        self.user = None
        self.tasks = ()
        self.selected_task_id = None
        self.filters = ListFilters()
        self.composing = False


class ViewState(BaseModel):
    """Ambient state the presentation layer renders next to a projection."""

    model_config = ConfigDict(use_enum_values=True)

    user: Optional[User] = None
    online: bool = True
    current_view: ViewName = ViewName.KANBAN
    status_filter: str = FILTER_ALL
    priority_filter: str = FILTER_ALL
    selected_task: Optional[Task] = None
    selected_subtasks: List[Task] = Field(default_factory=list)
    composing: bool = False
    calendar_year: int
    calendar_month: int
    undo_available: bool = False
    notifications: List[Notification] = Field(default_factory=list)
