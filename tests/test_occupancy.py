import pytest
from datetime import date, time
from rental_desk.errors import ValidationError
from rental_desk.models import PeriodType
from rental_desk.services.occupancy import (
    OccupancyUnit, normalize, span, add_months, months_count, weeks_count, hours_count, days_count
)

def test_hourly_one_unit_per_selected_day():
    units = normalize(PeriodType.HOURLY, date(2025, 3, 3), date(2025, 3, 10), time(10), time(12),
                      selected_days=[date(2025, 3, 5), date(2025, 3, 3)])
    assert [u.first_day for u in units] == [date(2025, 3, 3), date(2025, 3, 5)]
    assert all(u.start_time == time(10) and u.end_time == time(12) for u in units)

def test_hourly_without_selected_days_covers_each_day():
    units = normalize(PeriodType.HOURLY, date(2025, 3, 3), date(2025, 3, 5), time(9), time(10))
    assert len(units) == 3

def test_hourly_requires_times():
    with pytest.raises(ValidationError, match="required for hourly"):
        normalize(PeriodType.HOURLY, date(2025, 3, 3))

def test_daily_is_whole_day_per_calendar_day():
    units = normalize(PeriodType.DAILY, date(2025, 3, 30), date(2025, 4, 2))
    assert len(units) == 4
    assert all(u.is_whole_day for u in units)

def test_null_end_date_means_one_day():
    units = normalize(PeriodType.DAILY, date(2025, 3, 3))
    assert units == [OccupancyUnit(date(2025, 3, 3), date(2025, 3, 3))]

def test_weekly_recurring_repeats_start_weekday():
    units = normalize(PeriodType.WEEKLY_RECURRING, date(2025, 3, 3), date(2025, 3, 24))
    assert [u.first_day for u in units] == [date(2025, 3, 3), date(2025, 3, 10), date(2025, 3, 17), date(2025, 3, 24)]

def test_sliding_month_spans_one_month():
    units = normalize(PeriodType.SLIDING_MONTH, date(2025, 1, 15), date(2025, 1, 20))
    assert units == [OccupancyUnit(date(2025, 1, 15), date(2025, 2, 14))]

def test_sliding_month_clamps_to_month_length():
    assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2025, 11, 30), 2) == date(2026, 1, 30)

def test_calendar_month_without_end_runs_to_month_end():
    units = normalize(PeriodType.CALENDAR_MONTH, date(2025, 2, 10))
    assert span(units) == (date(2025, 2, 10), date(2025, 2, 28))

def test_months_count():
    assert months_count(PeriodType.CALENDAR_MONTH, date(2025, 1, 15), date(2025, 3, 3)) == 3
    assert months_count(PeriodType.CALENDAR_MONTH, date(2024, 12, 1), date(2025, 1, 31)) == 2
    assert months_count(PeriodType.CALENDAR_MONTH, date(2025, 1, 15), None) == 1
    assert months_count(PeriodType.SLIDING_MONTH, date(2025, 1, 15), date(2025, 6, 1)) == 1

def test_quantities():
    assert weeks_count(date(2025, 3, 1), date(2025, 3, 8)) == 2
    assert weeks_count(date(2025, 3, 1), None) == 1
    assert hours_count(time(10), time(11, 30)) == 2
    assert days_count(normalize(PeriodType.DAILY, date(2025, 3, 1), date(2025, 3, 3))) == 3

def test_touching_time_windows_do_not_conflict():
    a = OccupancyUnit(date(2025, 3, 3), date(2025, 3, 3), time(10), time(11))
    b = OccupancyUnit(date(2025, 3, 3), date(2025, 3, 3), time(11), time(12))
    c = OccupancyUnit(date(2025, 3, 3), date(2025, 3, 3), time(10, 30), time(11, 30))
    assert not a.conflicts_with(b)
    assert a.conflicts_with(c)
    assert c.conflicts_with(b)

def test_whole_day_conflicts_with_any_time_window():
    whole = OccupancyUnit(date(2025, 3, 1), date(2025, 3, 31))
    slot = OccupancyUnit(date(2025, 3, 15), date(2025, 3, 15), time(8), time(9))
    assert whole.conflicts_with(slot)
    assert whole.common_days(slot) == [date(2025, 3, 15)]

def test_invalid_ranges_are_rejected():
    with pytest.raises(ValidationError, match="before start_date"):
        normalize(PeriodType.DAILY, date(2025, 3, 3), date(2025, 3, 1))
    with pytest.raises(ValidationError, match="before end_time"):
        normalize(PeriodType.HOURLY, date(2025, 3, 3), None, time(12), time(10))
    with pytest.raises(ValidationError, match="cannot exceed 365 days"):
        normalize(PeriodType.DAILY, date(2025, 1, 1), date(2026, 1, 1))
