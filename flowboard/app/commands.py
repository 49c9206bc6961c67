"""Command palette for flowboard.

A fixed list of commands, filtered by a case-insensitive substring of the
title or description. Dispatch lives on the controller.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class Command(BaseModel):
    """One palette entry."""

    id: str
    title: str
    description: str
    shortcut: Optional[str] = Field(None, description="Keyboard shortcut hint, if any")


COMMANDS: List[Command] = [
    Command(id="new-task", title="New Task", description="Create a new task", shortcut="N"),
    Command(id="kanban", title="Kanban View", description="Switch to Kanban board"),
    Command(id="list", title="List View", description="Switch to List view"),
    Command(id="calendar", title="Calendar View", description="Switch to Calendar view"),
    Command(id="undo", title="Undo", description="Undo last action", shortcut="Ctrl+Z"),
]


def filter_commands(search: Optional[str] = None) -> List[Command]:
    """Commands whose title or description contains `search` (any case)."""
    needle = (search or "").lower()
    return [c for c in COMMANDS if needle in c.title.lower() or needle in c.description.lower()]


def find_command(command_id: str) -> Optional[Command]:
    for command in COMMANDS:
        if command.id == command_id:
            return command
    return None
