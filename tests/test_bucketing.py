from datetime import date, datetime, timedelta, timezone

from completion_calendar.bucketing import entries_for_day, group_by_day, star_day_count, summarize_day
from completion_calendar.utils import local_day

BASE = datetime(2025, 1, 1, tzinfo=timezone.utc)
_counter = 0


def make_entry(day, completed=False, title="Task", created_offset=None):
    global _counter
    _counter += 1
    offset = _counter if created_offset is None else created_offset
    return {
        "id": f"e{_counter}",
        "title": title,
        "date": day if isinstance(day, datetime) else datetime(day.year, day.month, day.day),
        "notes": "",
        "is_completed": completed,
        "created_at": BASE + timedelta(seconds=offset),
    }


class TestDayBucket:
    def test_mixed_completion_day(self):
        entries = [
            make_entry(date(2025, 3, 5), completed=True),
            make_entry(date(2025, 3, 5), completed=False),
        ]
        summary = summarize_day(entries_for_day(entries, date(2025, 3, 5)))
        assert summary.all_completed is False
        assert summary.completed_count == 1
        assert summary.total_count == 2
        assert summary.is_empty is False

    def test_empty_day(self):
        entries = [make_entry(date(2025, 3, 5), completed=True)]
        summary = summarize_day(entries_for_day(entries, date(2025, 3, 6)))
        assert summary.is_empty is True
        assert summary.all_completed is False
        assert summary.total_count == 0

    def test_all_completed_day(self):
        entries = [make_entry(date(2025, 3, 5), completed=True) for _ in range(3)]
        assert summarize_day(entries_for_day(entries, date(2025, 3, 5))).all_completed is True

    def test_ignores_time_of_day_and_orders_by_creation(self):
        late = make_entry(datetime(2025, 3, 5, 23, 59), title="late", created_offset=1)
        early = make_entry(datetime(2025, 3, 5, 0, 1), title="early", created_offset=5)
        other = make_entry(datetime(2025, 3, 6, 0, 0), title="other", created_offset=0)
        first = make_entry(datetime(2025, 3, 5, 12, 0), title="first", created_offset=-10)
        bucket = entries_for_day([late, early, other, first], date(2025, 3, 5))
        assert [e["title"] for e in bucket] == ["first", "late", "early"]

    def test_aware_dates_use_local_zone(self):
        tokyo = timezone(timedelta(hours=9))
        e = make_entry(datetime(2025, 3, 5, 20, 0, tzinfo=timezone.utc))
        assert entries_for_day([e], date(2025, 3, 6), tz=tokyo) == [e]
        assert entries_for_day([e], date(2025, 3, 5), tz=tokyo) == []
        assert entries_for_day([e], date(2025, 3, 5), tz=timezone.utc) == [e]


class TestGrouping:
    def test_group_by_day(self):
        a = make_entry(date(2025, 3, 5))
        b = make_entry(date(2025, 3, 6))
        c = make_entry(datetime(2025, 3, 5, 18, 0))
        groups = group_by_day([c, b, a])
        assert set(groups) == {date(2025, 3, 5), date(2025, 3, 6)}
        assert [e["id"] for e in groups[date(2025, 3, 5)]] == [a["id"], c["id"]]

    def test_star_day_count(self):
        entries = [
            make_entry(date(2025, 3, 1), completed=True),
            make_entry(date(2025, 3, 1), completed=True),
            make_entry(date(2025, 3, 2), completed=True),
            make_entry(date(2025, 3, 2), completed=False),
            make_entry(date(2025, 3, 3), completed=True),
            make_entry(date(2025, 2, 28), completed=True),
        ]
        assert star_day_count(entries) == 3
        march = [date(2025, 3, d) for d in range(1, 32)]
        assert star_day_count(entries, days=march) == 2
        assert star_day_count([]) == 0


class TestLocalDay:
    def test_plain_date_and_naive_datetime(self):
        assert local_day(date(2025, 3, 5)) == date(2025, 3, 5)
        assert local_day(datetime(2025, 3, 5, 23, 59)) == date(2025, 3, 5)

    def test_aware_datetime_converted(self):
        minus_five = timezone(timedelta(hours=-5))
        assert local_day(datetime(2025, 3, 6, 2, 0, tzinfo=timezone.utc), minus_five) == date(2025, 3, 5)
