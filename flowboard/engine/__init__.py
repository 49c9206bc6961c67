"""Pure task logic for flowboard: quick-input parsing, ordering and projections."""

from flowboard.engine.quick_input import parse_quick_input
from flowboard.engine.ordering import compute_order, column_tasks, needs_rebalance, rebalance_orders
from flowboard.engine.projections import board_projection, list_projection, calendar_projection, subtasks_of

__all__ = [
    "parse_quick_input",
    "compute_order",
    "column_tasks",
    "needs_rebalance",
    "rebalance_orders",
    "board_projection",
    "list_projection",
    "calendar_projection",
    "subtasks_of",
]
