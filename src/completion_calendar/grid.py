"""
Month grid layout: a reference date becomes six whole weeks of day slots.
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

GRID_SIZE = 42  # 6 weeks x 7 days
SUNDAY = calendar.SUNDAY


@dataclass(frozen=True)
class GridSlot:
    """One cell of the month grid; every slot has a concrete date."""

    date: date
    in_month: bool
    is_today: bool

    @property
    def weekday(self) -> int:
        return self.date.weekday()


def _validate_first_weekday(first_weekday: int) -> None:
    if not 0 <= first_weekday <= 6:
        raise ValueError("first_weekday must be between 0 (Monday) and 6 (Sunday)")


# PUBLIC_INTERFACE
def build_month_grid(
    reference: date,
    first_weekday: int = SUNDAY,
    today: Optional[date] = None,
) -> List[GridSlot]:
    """
    Lay out the month containing ``reference`` as exactly 42 consecutive days.

    The first slot is the first day of the week that contains the 1st of the
    month. Months that fit in fewer than six weeks roll the trailing slots into
    the following month.

    Args:
        reference: Any date inside the month to display.
        first_weekday: 0=Monday .. 6=Sunday.
        today: Date flagged as today; defaults to date.today().
    """
    _validate_first_weekday(first_weekday)
    today = today or date.today()

    cal = calendar.Calendar(firstweekday=first_weekday)
    weeks = cal.monthdatescalendar(reference.year, reference.month)
    start = weeks[0][0]

    slots: List[GridSlot] = []
    for offset in range(GRID_SIZE):
        d = start + timedelta(days=offset)
        slots.append(
            GridSlot(
                date=d,
                in_month=(d.year, d.month) == (reference.year, reference.month),
                is_today=d == today,
            )
        )
    return slots


# PUBLIC_INTERFACE
def add_months(d: date, months: int) -> date:
    """
    Shift ``d`` by whole calendar months, clamping the day to the target
    month's length (Jan 31 + 1 month -> Feb 28/29).
    """
    index = d.year * 12 + (d.month - 1) + months
    year, month0 = divmod(index, 12)
    month = month0 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(d.day, last_day))


def previous_month(d: date) -> date:
    return add_months(d, -1)


def next_month(d: date) -> date:
    return add_months(d, 1)
