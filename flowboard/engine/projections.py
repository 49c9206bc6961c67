"""View projections for flowboard.

Pure, read-only derivations of the task collection for the board, list and
calendar views. They are recomputed from scratch on every collection or
filter change and never mutate their input.
"""

import calendar
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field

from flowboard.engine.ordering import column_tasks
from flowboard.models.constants import (
    CALENDAR_CELL_COUNT,
    CALENDAR_CELL_TASK_LIMIT,
    FILTER_ALL,
    PRIORITY_RANK,
)
from flowboard.models.task import STATUS_ORDER, Task, TaskStatus


class DueState(str, Enum):
    """How a card's due date relates to today."""
    OVERDUE = "overdue"
    TODAY = "today"
    UPCOMING = "upcoming"


class BoardCard(BaseModel):
    """A top-level task on the board with its subtask progress."""

    model_config = ConfigDict(use_enum_values=True)

    task: Task
    subtasks_done: int = 0
    subtasks_total: int = 0
    due_state: Optional[DueState] = None


class BoardColumn(BaseModel):
    """One status column of the board."""

    model_config = ConfigDict(use_enum_values=True)

    status: TaskStatus
    cards: List[BoardCard] = Field(default_factory=list)

    @computed_field
    @property
    def count(self) -> int:
        return len(self.cards)


class CalendarCell(BaseModel):
    """One day of the 6-week calendar grid."""

    day: date
    in_month: bool
    is_today: bool = False
    tasks: List[Task] = Field(default_factory=list)

    @computed_field
    @property
    def summary_only(self) -> bool:
        """Too many tasks to list; the presentation layer shows a count instead."""
        return len(self.tasks) > CALENDAR_CELL_TASK_LIMIT


class CalendarMonth(BaseModel):
    """Calendar projection for a displayed month."""

    year: int
    month: int
    cells: List[CalendarCell] = Field(default_factory=list)

    @computed_field
    @property
    def title(self) -> str:
        return f"{calendar.month_name[self.month]} {self.year}"


def top_level(tasks: Iterable[Task]) -> List[Task]:
    """Tasks that are not subtasks."""
    return [t for t in tasks if not t.is_subtask]


def subtasks_of(tasks: Iterable[Task], parent_id: str) -> List[Task]:
    """Subtasks of a parent, ascending by order."""
    return sorted((t for t in tasks if t.parent_id == parent_id), key=lambda t: t.order)


def subtask_progress(tasks: Iterable[Task]) -> Dict[str, Tuple[int, int]]:
    """Map parent id -> (completed subtasks, total subtasks)."""
    progress: Dict[str, Tuple[int, int]] = {}
    for t in tasks:
        if not t.is_subtask:
            continue
        done, total = progress.get(t.parent_id, (0, 0))
        if t.status == TaskStatus.DONE.value:
            done += 1
        progress[t.parent_id] = (done, total + 1)
    return progress


def due_state(task: Task, today: date) -> Optional[DueState]:
    if task.due_date is None:
        return None
    if task.due_date < today:
        return DueState.OVERDUE
    if task.due_date == today:
        return DueState.TODAY
    return DueState.UPCOMING


def board_projection(tasks: Iterable[Task], today: Optional[date] = None) -> List[BoardColumn]:
    """Board projection: one column per status, cards ascending by order.

    Subtasks never get a card; they only count towards their parent's
    (done, total) progress.

    Args:
        tasks: Full task collection
        today: Reference day for due-date badges (defaults to today)

    Returns:
        Columns in board order (backlog, today, inprogress, done)
    """
    tasks = list(tasks)
    today = today or date.today()
    progress = subtask_progress(tasks)

    columns = []
    for status in STATUS_ORDER:
        cards = []
        for task in column_tasks(tasks, status):
            done, total = progress.get(task.id, (0, 0))
            cards.append(
                BoardCard(
                    task=task,
                    subtasks_done=done,
                    subtasks_total=total,
                    due_state=due_state(task, today),
                )
            )
        columns.append(BoardColumn(status=status, cards=cards))
    return columns


def list_sort_key(task: Task) -> tuple:
    """Composite list-view key.

    Tasks with a due date sort before those without; then earliest due
    date/time; then priority (high, normal, low); then order.
    """
    due = task.due_at
    if due is not None:
        due_key = (0, due)
    else:
        # Tasks without due dates: a constant so they sort after every dated task
        due_key = (1, datetime.max)
    return (due_key, PRIORITY_RANK.get(task.priority, PRIORITY_RANK["normal"]), task.order)


def list_projection(
    tasks: Iterable[Task],
    status: str = FILTER_ALL,
    priority: str = FILTER_ALL,
) -> List[Task]:
    """List projection: filtered top-level tasks in a total order.

    Args:
        tasks: Full task collection
        status: Exact status to keep, or "all"
        priority: Exact priority to keep, or "all"

    Returns:
        Sorted list of tasks
    """
    status = getattr(status, "value", status)
    priority = getattr(priority, "value", priority)
    selected = [
        t for t in top_level(tasks)
        if (status == FILTER_ALL or t.status == status)
        and (priority == FILTER_ALL or t.priority == priority)
    ]
    # sorted() is stable, so full ties keep collection order
    return sorted(selected, key=list_sort_key)


def calendar_start(year: int, month: int) -> date:
    """The Sunday on or before the first of the month."""
    first = date(year, month, 1)
    # weekday(): Monday=0 .. Sunday=6
    return first - timedelta(days=(first.weekday() + 1) % 7)


def calendar_projection(
    tasks: Iterable[Task],
    year: int,
    month: int,
    today: Optional[date] = None,
) -> CalendarMonth:
    """Calendar projection: a 42-cell grid bucketing tasks by due day.

    Cells outside the displayed month are flagged but still populated.
    """
    today = today or date.today()
    by_day: Dict[date, List[Task]] = {}
    for task in sorted(top_level(tasks), key=lambda t: t.order):
        if task.due_date is not None:
            by_day.setdefault(task.due_date, []).append(task)

    start = calendar_start(year, month)
    cells = []
    for offset in range(CALENDAR_CELL_COUNT):
        day = start + timedelta(days=offset)
        cells.append(
            CalendarCell(
                day=day,
                in_month=day.month == month,
                is_today=day == today,
                tasks=by_day.get(day, []),
            )
        )
    return CalendarMonth(year=year, month=month, cells=cells)
