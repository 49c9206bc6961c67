"""Application controller for flowboard.

Owns one AppState and wires the auth gate, sync session and undo buffer
together. Every user intent arrives here, is validated, and is turned into a
sync-session call; every read is a projection over the current state.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Union

from flowboard.app.commands import Command, filter_commands, find_command
from flowboard.app.state import AppState, ListFilters, ViewName, ViewState
from flowboard.auth.identity import AuthGate, AuthResult, IdentityProvider
from flowboard.engine.ordering import column_tasks, compute_order, needs_rebalance, now_ms, order_between, rebalance_orders
from flowboard.engine.projections import (
    BoardColumn,
    CalendarMonth,
    board_projection,
    calendar_projection,
    list_projection,
    subtasks_of,
)
from flowboard.engine.quick_input import parse_quick_input
from flowboard.models.constants import DEFAULT_SUBTASK_TEXT, FILTER_ALL
from flowboard.models.notification import NotificationLevel
from flowboard.models.task import Task, TaskDraft, TaskPriority, TaskStatus, TaskUpdate
from flowboard.models.user import User
from flowboard.sync.connectivity import Connectivity
from flowboard.sync.errors import InvalidTask, MutationResult
from flowboard.sync.notifications import NotificationCenter
from flowboard.sync.ports import DocumentStore
from flowboard.sync.session import SyncSession
from flowboard.sync.undo import UndoBuffer, UndoOutcome

logger = logging.getLogger(__name__)

_STATUS_VALUES = {s.value for s in TaskStatus}
_PRIORITY_VALUES = {p.value for p in TaskPriority}
# Columns the store cannot clear; an explicit null here is a bad request
_NON_NULLABLE_FIELDS = ("status", "priority", "order")


def _clean_tags(tags) -> List[str]:
    if tags is None:
        return []
    if isinstance(tags, str):
        tags = tags.split(",")
    return [t.strip() for t in tags if t and t.strip()]


class TaskBoardController:
    """One signed-in user's task board."""

    def __init__(self, store: DocumentStore, identity: IdentityProvider, *, online: bool = True):
        self.state = AppState()
        self.notifications = NotificationCenter()
        self.connectivity = Connectivity(online=online, notifier=self.notifications)
        self.undo_buffer = UndoBuffer(store, self.connectivity, self.notifications)
        self.session = SyncSession(store, self.state, self.undo_buffer, self.connectivity, self.notifications)
        self.gate = AuthGate(identity)
        self.gate.on_change(self._on_auth_change)

    def _on_auth_change(self, user: Optional[User]) -> None:
        if user is None:
            self.state.reset()
        else:
            self.state.user = user

    # Auth

    async def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> AuthResult:
        result = self.gate.sign_up(email, password, display_name)
        if result.ok:
            await self.session.start(result.user.id)
            self.notifications.notify(result.message, NotificationLevel.SUCCESS)
        return result

    async def sign_in(self, email: str, password: str) -> AuthResult:
        result = self.gate.sign_in(email, password)
        if result.ok:
            await self.session.start(result.user.id)
        return result

    async def attach(self, user: User) -> None:
        """Resume a session for an already-authenticated user."""
        self.gate.restore(user)
        if self.session.owner_id != user.id:
            await self.session.start(user.id)

    async def sign_out(self) -> AuthResult:
        await self.session.stop()
        result = self.gate.sign_out()
        if result.ok and result.message:
            self.notifications.notify(result.message, NotificationLevel.INFO)
        elif not result.ok:
            self.notifications.notify(f"Error signing out: {result.message}", NotificationLevel.ERROR)
        return result

    def change_password(self, current_password: str, new_password: str) -> AuthResult:
        result = self.gate.change_password(current_password, new_password)
        if result.ok:
            self.notifications.notify(result.message, NotificationLevel.SUCCESS)
        return result

    # Task intents

    def _invalid(self, message: str, level: NotificationLevel = NotificationLevel.WARNING) -> MutationResult:
        logger.warning(message)
        self.notifications.notify(message, level)
        return MutationResult.failure(InvalidTask(message))

    async def quick_add(self, text: str) -> MutationResult:
        """Parse quick-add text and create the resulting task."""
        draft = parse_quick_input(text)
        if not draft.text:
            return self._invalid("Task title is required")
        result = await self.session.create(draft)
        if result.ok:
            self.state.composing = False
        return result

    async def quick_add_on_day(self, text: str, day: date) -> MutationResult:
        """Quick-add with the due date forced to `day` (any parsed time is dropped)."""
        if not (text or "").strip():
            return self._invalid("Click on a day to set due date for new tasks", NotificationLevel.INFO)
        draft = parse_quick_input(text)
        if not draft.text:
            return self._invalid("Task title is required")
        draft = draft.model_copy(update={"due_date": day, "due_time": None})
        return await self.session.create(draft)

    async def save_task(
        self,
        fields: Union[TaskUpdate, Dict[str, Any]],
        task_id: Optional[str] = None,
    ) -> MutationResult:
        """Save the task editor: update `task_id`, or create a task when it is None."""
        changes = fields.changes() if isinstance(fields, TaskUpdate) else dict(fields)

        title = (changes.get("text") or "").strip()
        if not title and (task_id is None or "text" in changes):
            return self._invalid("Task title is required")
        if "text" in changes:
            changes["text"] = title
        if "description" in changes:
            changes["description"] = (changes["description"] or "").strip()
        if "tags" in changes:
            changes["tags"] = _clean_tags(changes["tags"])
        for name in _NON_NULLABLE_FIELDS:
            if name in changes and changes[name] is None:
                if task_id is None and name == "order":
                    continue
                return self._invalid(f"Task {name} cannot be empty")

        if task_id is None:
            result = await self.session.create(TaskDraft(**changes))
        else:
            result = await self.session.update(task_id, TaskUpdate(**changes))

        if result.ok:
            self.state.selected_task_id = None
        return result

    async def move_task(self, task_id: str, status: Union[TaskStatus, str], index: int) -> MutationResult:
        """Drop a task into `status` at position `index`.

        Only the moved task is written, unless the destination keys have
        collapsed; then the column is renumbered first.
        """
        status = TaskStatus(getattr(status, "value", status))
        task = self.state.find_task(task_id)
        if task is None:
            return self._invalid("Task not found")

        column = column_tasks(self.state.tasks, status, exclude_id=task_id)
        keys = [t.order for t in column]
        new_order = compute_order(column, index)

        if needs_rebalance(keys, index, new_order):
            keys = rebalance_orders(column)
            logger.info(f"Order keys collapsed in {status.value}; renumbering {len(column)} tasks")
            renumbered = await self.session.renumber([(t.id, k) for t, k in zip(column, keys)])
            if not renumbered.ok:
                return renumbered
            new_order = order_between(keys, index)

        return await self.session.update(task_id, {"status": status.value, "order": new_order})

    async def delete_task(self, task_id: str) -> MutationResult:
        result = await self.session.delete(task_id)
        if result.ok and self.state.selected_task_id == task_id:
            self.state.selected_task_id = None
        return result

    async def add_subtask(self, parent_id: str, text: str = DEFAULT_SUBTASK_TEXT) -> MutationResult:
        if self.state.find_task(parent_id) is None:
            return self._invalid("Task not found")
        text = (text or "").strip() or DEFAULT_SUBTASK_TEXT
        draft = TaskDraft(text=text, parent_id=parent_id, order=now_ms())
        return await self.session.create(draft)

    async def toggle_subtask(self, subtask_id: str, done: bool) -> MutationResult:
        status = TaskStatus.DONE if done else TaskStatus.BACKLOG
        return await self.session.update(subtask_id, {"status": status.value})

    async def undo(self) -> UndoOutcome:
        return await self.undo_buffer.undo()

    def set_online(self, online: bool) -> None:
        self.connectivity.set_online(online)

    # View intents

    def set_filters(self, status: Optional[str] = None, priority: Optional[str] = None) -> ListFilters:
        """Update list filters; unknown values fall back to "all"."""
        if status is not None:
            status = getattr(status, "value", status)
            self.state.filters.status = status if status in _STATUS_VALUES else FILTER_ALL
        if priority is not None:
            priority = getattr(priority, "value", priority)
            self.state.filters.priority = priority if priority in _PRIORITY_VALUES else FILTER_ALL
        return self.state.filters

    def switch_view(self, view: Union[ViewName, str]) -> ViewName:
        self.state.current_view = ViewName(getattr(view, "value", view))
        return self.state.current_view

    def select_task(self, task_id: Optional[str]) -> Optional[Task]:
        """Open the task editor for `task_id` (None closes it)."""
        task = self.state.find_task(task_id) if task_id else None
        self.state.selected_task_id = task.id if task else None
        return task

    def show_previous_month(self) -> CalendarMonth:
        if self.state.calendar_month == 1:
            self.state.calendar_year -= 1
            self.state.calendar_month = 12
        else:
            self.state.calendar_month -= 1
        return self.calendar()

    def show_next_month(self) -> CalendarMonth:
        if self.state.calendar_month == 12:
            self.state.calendar_year += 1
            self.state.calendar_month = 1
        else:
            self.state.calendar_month += 1
        return self.calendar()

    # Command palette

    def commands(self, search: Optional[str] = None) -> List[Command]:
        return filter_commands(search)

    async def execute_command(self, command_id: str) -> Optional[Command]:
        """Run a palette command; unknown ids are ignored and return None."""
        command = find_command(command_id)
        if command is None:
            logger.warning(f"Unknown command: {command_id}")
            return None

        if command.id == "new-task":
            self.state.selected_task_id = None
            self.state.composing = True
        elif command.id in {v.value for v in ViewName}:
            self.switch_view(command.id)
        elif command.id == "undo":
            await self.undo()
        return command

    # Reads

    def board(self, today: Optional[date] = None) -> List[BoardColumn]:
        return board_projection(self.state.tasks, today)

    def task_list(self) -> List[Task]:
        return list_projection(self.state.tasks, self.state.filters.status, self.state.filters.priority)

    def calendar(self, today: Optional[date] = None) -> CalendarMonth:
        return calendar_projection(self.state.tasks, self.state.calendar_year, self.state.calendar_month, today)

    def view_state(self) -> ViewState:
        selected = self.state.find_task(self.state.selected_task_id) if self.state.selected_task_id else None
        return ViewState(
            user=self.state.user,
            online=self.connectivity.online,
            current_view=self.state.current_view,
            status_filter=self.state.filters.status,
            priority_filter=self.state.filters.priority,
            selected_task=selected,
            selected_subtasks=subtasks_of(self.state.tasks, selected.id) if selected else [],
            composing=self.state.composing,
            calendar_year=self.state.calendar_year,
            calendar_month=self.state.calendar_month,
            undo_available=self.undo_buffer.pending is not None,
            notifications=self.notifications.recent,
        )
