"""Calendar arithmetic and the clock used by entities and services.

Pure helpers: nothing here touches the store. Services receive a clock so
that "now" and "today" can be pinned in tests and in batch jobs.
"""
import calendar
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

from questlog.domain.enums import RepeatFrequency, TimeBlock


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().date()


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return ``value`` as an aware UTC datetime.

    Naive values are taken to already be in UTC, which is how they come back
    from stores that drop the offset (SQLite).
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def add_months(value: date, months: int) -> date:
    """Add calendar months, clamping the day to the end of the target month."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def next_occurrence(value: date, frequency: RepeatFrequency) -> date:
    """Return the date of the next occurrence after ``value``.

    ``RepeatFrequency.NONE`` leaves the date unchanged.
    """
    frequency = RepeatFrequency(frequency)
    if frequency is RepeatFrequency.DAILY:
        return value + timedelta(days=1)
    if frequency is RepeatFrequency.WEEKLY:
        return value + timedelta(days=7)
    if frequency is RepeatFrequency.MONTHLY:
        return add_months(value, 1)
    if frequency is RepeatFrequency.YEARLY:
        return add_months(value, 12)
    return value


def next_occurrence_on_or_after(value: date, frequency: RepeatFrequency, today: date) -> date:
    """Step ``value`` forward by ``frequency`` until it is no earlier than ``today``.

    At least one step is always taken for a repeating frequency.
    """
    candidate = next_occurrence(value, frequency)
    if RepeatFrequency(frequency) is RepeatFrequency.NONE:
        return candidate
    while candidate < today:
        candidate = next_occurrence(candidate, frequency)
    return candidate


def period_bounds(on_date: date, time_block: TimeBlock) -> Tuple[date, date]:
    """Inclusive first and last day of the period containing ``on_date``.

    Weeks start on Monday.
    """
    time_block = TimeBlock(time_block)
    if time_block is TimeBlock.DAY:
        return on_date, on_date
    if time_block is TimeBlock.WEEK:
        start = on_date - timedelta(days=on_date.weekday())
        return start, start + timedelta(days=6)
    if time_block is TimeBlock.MONTH:
        last_day = calendar.monthrange(on_date.year, on_date.month)[1]
        return on_date.replace(day=1), on_date.replace(day=last_day)
    return on_date.replace(month=1, day=1), on_date.replace(month=12, day=31)
