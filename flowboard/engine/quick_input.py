"""Quick-input parser for flowboard.

Turns a free-text "quick add" string into a structured TaskDraft.
It is deterministic for a given `now` and never raises: patterns that are
absent or malformed simply leave the corresponding fields at their defaults.
"""

from __future__ import annotations

import re
from datetime import datetime, time, timedelta
from typing import Optional, Tuple

from flowboard.models.task import TaskDraft, TaskPriority, TaskStatus


_TAG_RE = re.compile(r"#(\w+)")
_PRIORITY_RE = re.compile(r"!(high|low)", re.I)
_RELATIVE_DATE_RE = re.compile(r"\b(today|tomorrow|in\s+(\d+)\s+days?)\b", re.I)
_TIME_RE = re.compile(r"\b(?P<h>\d{1,2})(?::(?P<m>\d{2}))?\s*(?P<ampm>am|pm)?\b", re.I)
_WHITESPACE_RE = re.compile(r"\s+")


def _extract_tags(text: str) -> Tuple[list[str], str]:
    tags = _TAG_RE.findall(text)
    return tags, _TAG_RE.sub("", text)


def _extract_priority(text: str) -> Tuple[Optional[TaskPriority], str]:
    m = _PRIORITY_RE.search(text)
    if not m:
        return None, text
    return TaskPriority(m.group(1).lower()), _PRIORITY_RE.sub("", text)


def _extract_relative_date(text: str, now: datetime):
    m = _RELATIVE_DATE_RE.search(text)
    if not m:
        return None, text
    keyword = m.group(1).lower()
    if keyword == "today":
        offset = 0
    elif keyword == "tomorrow":
        offset = 1
    else:
        offset = int(m.group(2))
    try:
        due = now.date() + timedelta(days=offset)
    except (OverflowError, ValueError):
        # Past the end of the calendar; not a date after all
        return None, text
    # Every date keyword goes, so a second pass over the title finds nothing.
    return due, _RELATIVE_DATE_RE.sub("", text)


def _extract_time(text: str) -> Tuple[Optional[time], str]:
    m = _TIME_RE.search(text)
    if not m:
        return None, text
    hours = int(m.group("h"))
    minutes = int(m.group("m") or "0")
    ampm = (m.group("ampm") or "").lower()

    if ampm == "pm" and hours < 12:
        hours += 12
    if ampm == "am" and hours == 12:
        hours = 0
    if hours > 23 or minutes > 59:
        return None, text

    return time(hour=hours, minute=minutes), text[:m.start()] + text[m.end():]


def parse_quick_input(text: str, *, now: Optional[datetime] = None) -> TaskDraft:
    """Parse quick-add text into a task draft.

    Extraction runs in a fixed order and each step strips what it matched
    before the next one runs:

    1. ``#tag`` tokens (all of them) become tags.
    2. The first ``!high`` / ``!low`` sets the priority.
    3. The first ``today`` / ``tomorrow`` / ``in N days`` sets the due date.
    4. Only if a due date was set: the first ``H``, ``H:MM`` with optional
       ``am``/``pm`` sets the time of day.
    5. Whitespace is collapsed and trimmed; the rest is the title.

    A bare time such as "3pm" with no date keyword is left in the title.

    Examples:
        "Buy milk #errand !high tomorrow" -> text="Buy milk", tags=["errand"],
        priority="high", due_date=tomorrow
    """
    now = now or datetime.now()
    working = text or ""

    tags, working = _extract_tags(working)
    priority, working = _extract_priority(working)
    due_date, working = _extract_relative_date(working, now)

    due_time = None
    if due_date is not None:
        due_time, working = _extract_time(working)

    title = _WHITESPACE_RE.sub(" ", working).strip()

    return TaskDraft(
        text=title,
        tags=tags,
        priority=priority or TaskPriority.NORMAL,
        status=TaskStatus.BACKLOG,
        due_date=due_date,
        due_time=due_time,
    )
