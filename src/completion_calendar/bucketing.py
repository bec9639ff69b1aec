"""
Partition entries by calendar day and compute per-day completion aggregates.

All functions here are pure reads over plain entity lists.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, tzinfo
from typing import Dict, Iterable, List, Optional

from .models import CalendarEntryEntity
from .utils import local_day


@dataclass(frozen=True)
class DaySummary:
    total_count: int
    completed_count: int

    @property
    def is_empty(self) -> bool:
        return self.total_count == 0

    @property
    def all_completed(self) -> bool:
        """True only for a non-empty bucket whose entries are all completed."""
        return self.total_count > 0 and self.completed_count == self.total_count

    def as_dict(self) -> dict:
        return {
            "total_count": self.total_count,
            "completed_count": self.completed_count,
            "is_empty": self.is_empty,
            "all_completed": self.all_completed,
        }


def _by_creation(entries: Iterable[CalendarEntryEntity]) -> List[CalendarEntryEntity]:
    # sorted() is stable, so equal timestamps keep store order
    return sorted(entries, key=lambda e: e["created_at"])


# PUBLIC_INTERFACE
def entries_for_day(
    entries: Iterable[CalendarEntryEntity],
    day: date,
    tz: Optional[tzinfo] = None,
) -> List[CalendarEntryEntity]:
    """
    Return the bucket for ``day``: entries dated on that calendar day,
    ordered by created_at ascending. Time of day is ignored.
    """
    target = local_day(day, tz)
    return _by_creation(e for e in entries if local_day(e["date"], tz) == target)


# PUBLIC_INTERFACE
def summarize_day(bucket: Iterable[CalendarEntryEntity]) -> DaySummary:
    items = list(bucket)
    return DaySummary(
        total_count=len(items),
        completed_count=sum(1 for e in items if e["is_completed"]),
    )


# PUBLIC_INTERFACE
def group_by_day(
    entries: Iterable[CalendarEntryEntity],
    tz: Optional[tzinfo] = None,
) -> Dict[date, List[CalendarEntryEntity]]:
    """Group entries into per-day buckets, each ordered by created_at."""
    groups: Dict[date, List[CalendarEntryEntity]] = {}
    for e in _by_creation(entries):
        groups.setdefault(local_day(e["date"], tz), []).append(e)
    return groups


# PUBLIC_INTERFACE
def star_day_count(
    entries: Iterable[CalendarEntryEntity],
    days: Optional[Iterable[date]] = None,
    tz: Optional[tzinfo] = None,
) -> int:
    """
    Count the days whose bucket is all completed.

    Args:
        entries: All entries to consider.
        days: When given, only these days are counted (e.g. the in-month
            days of a displayed grid).
        tz: Zone used to derive each entry's local day.
    """
    groups = group_by_day(entries, tz)
    allowed = set(days) if days is not None else None
    return sum(
        1
        for d, bucket in groups.items()
        if (allowed is None or d in allowed) and summarize_day(bucket).all_completed
    )
