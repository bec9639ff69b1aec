"""
Turning a template into a new entry, and the usage bookkeeping that goes with it.

The store performs both effects under one lock or transaction; see
``Store.apply_template``.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Union

from .models import EventTemplateEntity
from .schemas import EntryCreate


# PUBLIC_INTERFACE
def entry_from_template(template: EventTemplateEntity, on_date: Union[date, datetime]) -> EntryCreate:
    """Build the create payload for an entry copied from ``template``."""
    return EntryCreate(title=template["title"], date=on_date, notes="", is_completed=False)


# PUBLIC_INTERFACE
def mark_used(template: EventTemplateEntity, now: datetime) -> EventTemplateEntity:
    """Return a copy of ``template`` with its usage counter bumped."""
    used = template.copy()
    used["usage_count"] = template["usage_count"] + 1
    used["last_used_at"] = now
    return used
