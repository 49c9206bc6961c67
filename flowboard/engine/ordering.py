"""Fractional ordering for flowboard.

Tasks carry a float `order` key. Moving a task computes one new key that sits
between its new neighbours, so only the moved task is ever written.
"""

import time
from typing import Iterable, List, Optional, Sequence

from flowboard.models.constants import ORDER_APPEND_GAP, ORDER_REBALANCE_STEP
from flowboard.models.task import Task, TaskStatus


def now_ms() -> float:
    """Current epoch time in milliseconds (used as a large monotonic seed)."""
    return time.time() * 1000


def column_tasks(tasks: Iterable[Task], status: TaskStatus, exclude_id: Optional[str] = None) -> List[Task]:
    """Top-level tasks of one status column, ascending by order.

    Args:
        tasks: Full task collection
        status: Column to select
        exclude_id: Task to leave out (the one being dragged)

    Returns:
        Column tasks sorted by order
    """
    status_value = getattr(status, "value", status)
    column = [
        t for t in tasks
        if t.status == status_value and not t.is_subtask and t.id != exclude_id
    ]
    return sorted(column, key=lambda t: t.order)


def order_between(keys: Sequence[float], insert_index: int, *, now: Optional[float] = None) -> float:
    """Compute the key for an insertion at `insert_index` into ascending `keys`."""
    if not keys:
        return now if now is not None else now_ms()
    if insert_index <= 0:
        return keys[0] / 2
    if insert_index >= len(keys):
        return keys[-1] + ORDER_APPEND_GAP
    return (keys[insert_index - 1] + keys[insert_index]) / 2


def compute_order(column: Sequence[Task], insert_index: int, *, now: Optional[float] = None) -> float:
    """Compute a new order key for a task dropped into a column.

    Policy:
    - empty column: current time in milliseconds
    - index 0: half of the first key
    - at or past the end: last key + 1000
    - otherwise: mean of the two neighbouring keys

    Args:
        column: Destination column tasks, ascending by order, without subtasks
        insert_index: Drop position within `column`
        now: Override for the empty-column seed (epoch milliseconds)

    Returns:
        The new order key
    """
    return order_between([t.order for t in column], insert_index, now=now)


def needs_rebalance(keys: Sequence[float], insert_index: int, value: float) -> bool:
    """True when `value` no longer sorts strictly between its would-be neighbours.

    Repeated insertions at the same boundary halve the gap each time; once
    floating point runs out of precision the new key collides with a neighbour.
    """
    if insert_index > 0 and insert_index - 1 < len(keys) and not value > keys[insert_index - 1]:
        return True
    if insert_index < len(keys) and not value < keys[insert_index]:
        return True
    return False


def rebalance_orders(column: Sequence[Task]) -> List[float]:
    """Evenly spaced keys for `column`, preserving its current sequence."""
    return [ORDER_REBALANCE_STEP * (i + 1) for i in range(len(column))]
