from __future__ import annotations

from datetime import datetime
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class CalendarEntryEntity(TypedDict):
    """
    A single to-do/event record owned by exactly one calendar day.

    Fields:
    - id: Opaque unique identifier (UUID hex), immutable
    - title: Non-empty display title (trimmed on input via schemas)
    - date: Owning day; any time-of-day component is ignored when bucketing
    - notes: Free text, may be empty
    - is_completed: Completion flag
    - created_at: Creation timestamp, orders entries within a day
    """

    id: str
    title: str
    date: datetime
    notes: str
    is_completed: bool
    created_at: datetime


# PUBLIC_INTERFACE
class EventTemplateEntity(TypedDict):
    """
    A reusable preset that quickly creates new entries.

    usage_count and last_used_at are only changed by template application.
    """

    id: str
    title: str
    emoji: str
    color_hex: Optional[str]
    created_at: datetime
    last_used_at: Optional[datetime]
    usage_count: int
