"""Occupancy normalization.

Every rental, whatever its period type, is reduced to a list of
``OccupancyUnit`` values: a day range plus an optional time window.
Units with no time window occupy the whole day. Two units clash when
their day ranges intersect and their time windows overlap as half-open
intervals, so a booking ending at 10:00 never clashes with one starting
at 10:00.

An application without an end date occupies its start date only (or
one period for the monthly types). Open-ended rentals are a billing
matter and are never treated as infinite here.
"""
import calendar
import math
from dataclasses import dataclass
from datetime import date, time, timedelta
from typing import Iterator, List, Optional, Sequence, Tuple

from rental_desk.errors import ValidationError
from rental_desk.models.enums import PeriodType

DEFAULT_MAX_DAYS = 365


@dataclass(frozen=True)
class OccupancyUnit:
    first_day: date
    last_day: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    @property
    def is_whole_day(self) -> bool:
        return self.start_time is None or self.end_time is None

    def days(self) -> Iterator[date]:
        current = self.first_day
        while current <= self.last_day:
            yield current
            current += timedelta(days=1)

    def shares_day_with(self, other: 'OccupancyUnit') -> bool:
        return self.first_day <= other.last_day and other.first_day <= self.last_day

    def conflicts_with(self, other: 'OccupancyUnit') -> bool:
        if not self.shares_day_with(other):
            return False
        if self.is_whole_day or other.is_whole_day:
            return True
        return self.start_time < other.end_time and other.start_time < self.end_time

    def common_days(self, other: 'OccupancyUnit') -> List[date]:
        first = max(self.first_day, other.first_day)
        last = min(self.last_day, other.last_day)
        return list(OccupancyUnit(first, last).days()) if first <= last else []


def add_months(day: date, months: int) -> date:
    """Shift by whole months, clamping to the target month's length."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


def end_of_month(day: date) -> date:
    return date(day.year, day.month, calendar.monthrange(day.year, day.month)[1])


def check_range(start_date: date, end_date: Optional[date], max_days: Optional[int] = DEFAULT_MAX_DAYS):
    if end_date is not None and end_date < start_date:
        raise ValidationError("end_date must not be before start_date.")
    if max_days and end_date is not None and (end_date - start_date).days + 1 > max_days:
        raise ValidationError(f"Rental period cannot exceed {max_days} days.")


def check_times(start_time: Optional[time], end_time: Optional[time]):
    if (start_time is None) != (end_time is None):
        raise ValidationError("start_time and end_time must be given together.")
    if start_time is not None and start_time >= end_time:
        raise ValidationError("start_time must be before end_time.")


def _each_day(start_date, end_date):
    return list(OccupancyUnit(start_date, end_date or start_date).days())


def _hourly(start_date, end_date, start_time, end_time, selected_days):
    if start_time is None or end_time is None:
        raise ValidationError("start_time and end_time are required for hourly rentals.")
    days = selected_days or _each_day(start_date, end_date)
    return [OccupancyUnit(d, d, start_time, end_time) for d in days]


def _daily(start_date, end_date, start_time, end_time, selected_days):
    return [OccupancyUnit(d, d, start_time, end_time) for d in _each_day(start_date, end_date)]


def _weekly_recurring(start_date, end_date, start_time, end_time, selected_days):
    if selected_days:
        days = selected_days
    else:
        days = []
        current = start_date
        last = end_date or start_date
        while current <= last:
            days.append(current)
            current += timedelta(days=7)
    return [OccupancyUnit(d, d, start_time, end_time) for d in days]


def _sliding_month(start_date, end_date, start_time, end_time, selected_days):
    # Always exactly one month from the start date, [start, start + 1 month)
    return [OccupancyUnit(start_date, add_months(start_date, 1) - timedelta(days=1))]


def _calendar_month(start_date, end_date, start_time, end_time, selected_days):
    return [OccupancyUnit(start_date, end_date or end_of_month(start_date))]


_NORMALIZERS = {
    PeriodType.HOURLY: _hourly,
    PeriodType.DAILY: _daily,
    PeriodType.WEEKLY_RECURRING: _weekly_recurring,
    PeriodType.SLIDING_MONTH: _sliding_month,
    PeriodType.CALENDAR_MONTH: _calendar_month,
}


def normalize(period_type, start_date: date, end_date: Optional[date] = None,
              start_time: Optional[time] = None, end_time: Optional[time] = None,
              selected_days: Optional[Sequence[date]] = None,
              max_days: Optional[int] = DEFAULT_MAX_DAYS) -> List[OccupancyUnit]:
    """Expand a rental period into its occupancy units."""
    period_type = PeriodType(period_type)
    check_range(start_date, end_date, max_days)
    check_times(start_time, end_time)
    days = sorted(set(selected_days or []))
    if max_days and len(days) > max_days:
        raise ValidationError(f"Rental period cannot exceed {max_days} days.")
    return _NORMALIZERS[period_type](start_date, end_date, start_time, end_time, days)


def normalize_booking(record, max_days: Optional[int] = DEFAULT_MAX_DAYS) -> List[OccupancyUnit]:
    """Normalize anything carrying the booking attributes.

    Works for ``RentalApplication`` rows and ``AvailabilityQuery`` values
    alike: both expose ``period_type``, the dates, the times and
    ``selected_dates``.
    """
    return normalize(
        record.period_type,
        record.start_date,
        record.end_date,
        record.start_time,
        record.end_time,
        record.selected_dates,
        max_days=max_days,
    )


def span(units: Sequence[OccupancyUnit]) -> Tuple[date, date]:
    return min(u.first_day for u in units), max(u.last_day for u in units)


def occupied_days(units: Sequence[OccupancyUnit]) -> List[date]:
    days = set()
    for unit in units:
        days.update(unit.days())
    return sorted(days)


# Quantities reused by pricing

def days_count(units: Sequence[OccupancyUnit]) -> int:
    return len(occupied_days(units))


def weeks_count(start_date: date, end_date: Optional[date]) -> int:
    if end_date is None:
        return 1
    return math.ceil(((end_date - start_date).days + 1) / 7)


def months_count(period_type, start_date: date, end_date: Optional[date]) -> int:
    if end_date is None or PeriodType(period_type) == PeriodType.SLIDING_MONTH:
        return 1
    return (end_date.year - start_date.year) * 12 + (end_date.month - start_date.month) + 1


def hours_count(start_time: time, end_time: time) -> int:
    minutes = (end_time.hour * 60 + end_time.minute) - (start_time.hour * 60 + start_time.minute)
    return math.ceil(minutes / 60)
