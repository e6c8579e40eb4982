#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""A light wrapper around the `datetime` library, containing the calendar
arithmetic shared by the recurrence engine and the calendar grid: shifting
instants by calendar units, month boundaries, weekday indexing and the compact
iCalendar date forms used in recurrence rules."""

import calendar
import datetime
from enum import StrEnum, auto
from typing import NamedTuple, Self

from dateutil import tz
from dateutil.relativedelta import relativedelta

from cadence.constants import DAYS_PER_WEEK, ICAL_DATE_FORMAT, ICAL_DATETIME_FORMAT

END_OF_DAY = datetime.time(23, 59, 59)


class Frequency(StrEnum):
    DAILY = auto()
    WEEKLY = auto()
    MONTHLY = auto()
    YEARLY = auto()


class TimeInterval(NamedTuple):
    """Represents the time interval between two specific time points."""

    start: datetime.datetime
    end: datetime.datetime

    @property
    def duration(self) -> datetime.timedelta:
        return self.end - self.start

    def contains(self, dt: datetime.datetime) -> bool:
        """Check if a given datetime is contained within this time interval."""
        return self.start <= dt <= self.end

    def includes(self, other: Self) -> bool:
        """Check if `other` is included in this time interval."""
        return self.start <= other.start and self.end >= other.end


class DateRange(NamedTuple):
    """Represents a span between two specific dates, both ends included."""

    start: datetime.date
    end: datetime.date

    def contains(self, d: datetime.date) -> bool:
        return self.start <= d <= self.end

    def dates(self) -> list[datetime.date]:
        return [
            self.start + datetime.timedelta(days=i)
            for i in range((self.end - self.start).days + 1)
        ]


def today_() -> datetime.date:
    """Return the current date on the machine running the engine."""
    return datetime.date.today()


def shift(
    instant: datetime.datetime, frequency: Frequency, steps: int
) -> datetime.datetime:
    """Move `instant` forward by `steps` units of `frequency`.

    Days and weeks are exact. Months and years are calendar units which keep the
    time of day and the day of month; when the target month is too short the
    result is clamped to its last day (eg Jan 31 + 1 month is Feb 28 or 29).
    """
    match frequency:
        case Frequency.DAILY:
            return instant + datetime.timedelta(days=steps)
        case Frequency.WEEKLY:
            return instant + datetime.timedelta(weeks=steps)
        case Frequency.MONTHLY:
            return instant + relativedelta(months=steps)
        case Frequency.YEARLY:
            return instant + relativedelta(years=steps)
        case _:
            raise ValueError(f"Unsupported frequency: {frequency}")


def days_in_month(d: datetime.date) -> int:
    return calendar.monthrange(d.year, d.month)[1]


def first_of_month(d: datetime.date) -> datetime.date:
    return datetime.date(d.year, d.month, 1)


def last_of_month(d: datetime.date) -> datetime.date:
    return datetime.date(d.year, d.month, days_in_month(d))


def weekday_index(d: datetime.date) -> int:
    """Weekday of `d` in the range [0, 6] where Sunday is 0.

    Note that `datetime.date.weekday` counts from Monday.
    """
    return (d.weekday() + 1) % DAYS_PER_WEEK


def local_date(
    instant: datetime.datetime, tzinfo: datetime.tzinfo | None = None
) -> datetime.date:
    """The calendar date on which `instant` falls for a viewer in `tzinfo`.

    Naive datetimes are wall-clock times already and are returned as is. Aware
    datetimes are converted to `tzinfo` (the machine's local zone if not set)
    before the date is taken, never truncated in UTC.
    """
    return to_wall_clock(instant, tzinfo).date()


def parse_ical_date(value: str) -> datetime.datetime | None:
    """Parse the compact forms `YYYYMMDD` and `YYYYMMDDTHHMMSS`.

    A trailing `Z` is stripped and the result is a naive local datetime. Date-only
    values resolve to the end of that day. Returns None when `value` is in neither
    form.
    """
    value = value.strip().upper().rstrip("Z")
    if len(value) not in (8, 15):
        return None
    try:
        return datetime.datetime.strptime(value, ICAL_DATETIME_FORMAT)
    except ValueError:
        pass
    try:
        day = datetime.datetime.strptime(value, ICAL_DATE_FORMAT)
    except ValueError:
        return None
    return datetime.datetime.combine(day.date(), END_OF_DAY)


def format_ical_date(instant: datetime.datetime) -> str:
    """Inverse of `parse_ical_date`: instants at the end of a day are written
    in the date-only form."""
    if instant.time().replace(microsecond=0) == END_OF_DAY:
        return instant.strftime(ICAL_DATE_FORMAT)
    return instant.strftime(ICAL_DATETIME_FORMAT)


def to_wall_clock(
    instant: datetime.datetime, tzinfo: datetime.tzinfo | None = None
) -> datetime.datetime:
    """Naive wall-clock time of `instant` for a viewer in `tzinfo`. Naive
    datetimes are returned unchanged."""
    if instant.tzinfo is None or instant.tzinfo.utcoffset(instant) is None:
        return instant
    return instant.astimezone(tzinfo or tz.tzlocal()).replace(tzinfo=None)
