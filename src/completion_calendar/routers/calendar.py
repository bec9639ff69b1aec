from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..live import compute_day, compute_month
from ..repositories import Store, get_store
from ..schemas import DayOut, DaySummaryOut, EntryOut, MonthOut, SlotOut
from ..settings import Settings, get_settings

router = APIRouter(
    prefix="/api/v1/calendar",
    tags=["calendar"],
)


def _get_store(store: Store = Depends(get_store)) -> Store:
    return store


def _today(settings: Settings) -> date:
    return datetime.now(settings.tz).date()


# PUBLIC_INTERFACE
@router.get(
    "/month",
    response_model=MonthOut,
    summary="Month Grid",
    description=(
        "Six weeks (42 days) around the month containing `reference`, each day "
        "with its completion summary. `previous_reference` and `next_reference` "
        "navigate one month back or forward."
    ),
)
def month_grid(
    reference: Optional[date] = Query(None, description="Any day in the month to show; defaults to today"),
    first_weekday: Optional[int] = Query(
        None, ge=0, le=6, description="First grid column, 0=Monday .. 6=Sunday"
    ),
    store: Store = Depends(_get_store),
) -> MonthOut:
    settings = get_settings()
    today = _today(settings)
    ref = reference or today
    weekday = settings.first_weekday if first_weekday is None else first_weekday

    state = compute_month(store.list_entries(), ref, weekday, tz=settings.tz, today=today)
    slots = [
        SlotOut(
            date=s.date,
            in_month=s.in_month,
            is_today=s.is_today,
            weekday=s.weekday,
            summary=DaySummaryOut(**state.summaries[s.date].as_dict()),
        )
        for s in state.slots
    ]
    return MonthOut(
        year=ref.year,
        month=ref.month,
        first_weekday=weekday,
        slots=slots,
        star_day_count=state.star_day_count,
        previous_reference=state.previous_reference,
        next_reference=state.next_reference,
    )


# PUBLIC_INTERFACE
@router.get(
    "/day/{day}",
    response_model=DayOut,
    summary="Day Entries",
    description="The day's entries in creation order with the day's completion summary.",
)
def day_entries(day: date, store: Store = Depends(_get_store)) -> DayOut:
    state = compute_day(store.list_entries(), day, get_settings().tz)
    return DayOut(
        date=state.date,
        entries=[EntryOut(**e) for e in state.entries],
        summary=DaySummaryOut(**state.summary.as_dict()),
    )
