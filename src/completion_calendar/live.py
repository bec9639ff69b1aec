"""
Live views: derived snapshots that are recomputed on every store change.

A shell binds to a LiveView instead of holding its own copies of records, so a
day's list reflects edits made anywhere else (the derived value is never kept
across a change).
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, tzinfo
from typing import Callable, Dict, Generic, List, Optional, TypeVar

from .bucketing import DaySummary, entries_for_day, group_by_day, star_day_count, summarize_day
from .events import StoreChange
from .grid import SUNDAY, GridSlot, build_month_grid, next_month, previous_month
from .models import CalendarEntryEntity
from .repositories import Store

T = TypeVar("T")


class LiveView(Generic[T]):
    """
    Holds ``compute(store)`` and re-runs it whenever the store changes.

    Listeners registered with ``on_change`` receive the fresh value after each
    recomputation. Call ``close`` to stop following the store.
    """

    def __init__(self, store: Store, compute: Callable[[Store], T]) -> None:
        self._store = store
        self._compute = compute
        self._listeners: List[Callable[[T], None]] = []
        self._value: T = compute(store)
        self._unsubscribe: Optional[Callable[[], None]] = store.subscribe(self._refresh)

    @property
    def value(self) -> T:
        return self._value

    def on_change(self, listener: Callable[[T], None]) -> None:
        self._listeners.append(listener)

    def _refresh(self, change: StoreChange) -> None:
        self._value = self._compute(self._store)
        for listener in list(self._listeners):
            listener(self._value)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._listeners.clear()


@dataclass(frozen=True)
class DayState:
    date: date
    entries: List[CalendarEntryEntity]
    summary: DaySummary


@dataclass(frozen=True)
class MonthState:
    reference: date
    first_weekday: int
    slots: List[GridSlot]
    summaries: Dict[date, DaySummary]
    star_day_count: int

    @property
    def previous_reference(self) -> date:
        return previous_month(self.reference)

    @property
    def next_reference(self) -> date:
        return next_month(self.reference)


# PUBLIC_INTERFACE
def compute_day(entries: List[CalendarEntryEntity], day: date, tz: Optional[tzinfo] = None) -> DayState:
    bucket = entries_for_day(entries, day, tz)
    return DayState(date=day, entries=bucket, summary=summarize_day(bucket))


# PUBLIC_INTERFACE
def compute_month(
    entries: List[CalendarEntryEntity],
    reference: date,
    first_weekday: int = SUNDAY,
    tz: Optional[tzinfo] = None,
    today: Optional[date] = None,
) -> MonthState:
    """
    Build the 42-slot grid for ``reference`` and attach each slot's summary.
    The star count covers the in-month days only.
    """
    slots = build_month_grid(reference, first_weekday, today=today)
    groups = group_by_day(entries, tz)
    summaries = {s.date: summarize_day(groups.get(s.date, [])) for s in slots}
    stars = star_day_count(entries, days=[s.date for s in slots if s.in_month], tz=tz)
    return MonthState(
        reference=reference,
        first_weekday=first_weekday,
        slots=slots,
        summaries=summaries,
        star_day_count=stars,
    )


def live_day(store: Store, day: date, tz: Optional[tzinfo] = None) -> LiveView[DayState]:
    return LiveView(store, lambda s: compute_day(s.list_entries(), day, tz))


def live_month(
    store: Store,
    reference: date,
    first_weekday: int = SUNDAY,
    tz: Optional[tzinfo] = None,
) -> LiveView[MonthState]:
    return LiveView(store, lambda s: compute_month(s.list_entries(), reference, first_weekday, tz))
