#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Month view of a calendar: a grid of seven columns covering every week that
overlaps the displayed month, with occurrences bucketed by local date.

Building a grid never fails. Malformed inputs at the boundary (an anchor that
is not a date, a start of week out of range) are normalised instead.
"""

import datetime
import logging
from collections import defaultdict
from collections.abc import Iterable
from typing import Literal, NamedTuple

from dateutil.parser import isoparse

from cadence.constants import DAYS_PER_WEEK, DEFAULT_START_OF_WEEK
from cadence.recurrence.occurrences import Occurrence
from cadence.recurrence.time_utils import (
    DateRange,
    days_in_month,
    first_of_month,
    last_of_month,
    local_date,
    to_wall_clock,
    today_,
    weekday_index,
)

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

PeriodAnchor = datetime.date | datetime.datetime | str | None


class CalendarCell(NamedTuple):
    """A day in the calendar grid.

    Parameters
    ----------
    date
        The day the cell represents.
    is_in_current_period
        False for the days of the neighbouring months padding the first and
        last weeks.
    events
        Occurrences starting on `date`, ordered by start then ID.
    is_today
        Whether `date` is the reference date the grid was built for.
    is_past
        Whether `date` is before the reference date.
    """

    date: datetime.date
    is_in_current_period: bool
    events: tuple[Occurrence, ...] = ()
    is_today: bool = False
    is_past: bool = False


class GridConfig(NamedTuple):
    """Calendar grid settings.

    Parameters
    ---------
    start_of_week
        The weekday shown in the first column, 0 for Sunday to 6 for Saturday.
    period_anchor
        Any date in the month to display. The current month if not set.
    tz
        The zone in which the local date of an occurrence is read. The
        machine's local zone if not set.
    """

    start_of_week: int = DEFAULT_START_OF_WEEK
    period_anchor: PeriodAnchor = None
    tz: datetime.tzinfo | None = None


def normalize_anchor(period_anchor: PeriodAnchor) -> datetime.date:
    """Resolve `period_anchor` to a date, falling back to today when it is
    missing or malformed. Strings may be `YYYY-MM` or `YYYY-MM-DD`."""
    if isinstance(period_anchor, datetime.datetime):
        return period_anchor.date()
    if isinstance(period_anchor, datetime.date):
        return period_anchor
    if isinstance(period_anchor, str):
        try:
            return isoparse(period_anchor.strip()).date()
        except (ValueError, OverflowError):
            logger.warning(
                "Malformed calendar period %r, showing the current month", period_anchor
            )
    elif period_anchor is not None:
        logger.warning(
            "Unsupported calendar period %r, showing the current month", period_anchor
        )
    return today_()


def normalize_start_of_week(start_of_week: int | str | None) -> int:
    """Coerce `start_of_week` to [0, 6]. Settings stores often hand it over as a
    string; values that are not integers fall back to Monday."""
    try:
        return int(start_of_week) % DAYS_PER_WEEK
    except (TypeError, ValueError):
        logger.warning(
            "Invalid start of week %r, defaulting to %s",
            start_of_week,
            WEEKDAY_NAMES[DEFAULT_START_OF_WEEK],
        )
        return DEFAULT_START_OF_WEEK


def leading_days(first_day: datetime.date, start_of_week: int) -> int:
    """How many days of the previous month complete the first displayed week."""
    return (weekday_index(first_day) - start_of_week + DAYS_PER_WEEK) % DAYS_PER_WEEK


def visible_range(
    period_anchor: PeriodAnchor, start_of_week: int | str = DEFAULT_START_OF_WEEK
) -> DateRange:
    """The first and last dates displayed in the grid of the month of
    `period_anchor`, padding days included. Use it to query the occurrences
    the grid needs."""
    anchor = normalize_anchor(period_anchor)
    start_of_week = normalize_start_of_week(start_of_week)
    try:
        return _month_range(anchor, start_of_week)
    except OverflowError:
        # padding weeks of year 1 and 9999 fall outside the supported dates
        logger.warning(
            "Calendar period %s cannot be displayed, showing the current month",
            anchor,
        )
        return _month_range(today_(), start_of_week)


def _month_range(anchor: datetime.date, start_of_week: int) -> DateRange:
    first, last = first_of_month(anchor), last_of_month(anchor)
    leading = leading_days(first, start_of_week)
    total_cells = leading + days_in_month(anchor)
    trailing = (DAYS_PER_WEEK - total_cells % DAYS_PER_WEEK) % DAYS_PER_WEEK
    return DateRange(
        start=first - datetime.timedelta(days=leading),
        end=last + datetime.timedelta(days=trailing),
    )


def _sort_key(occurrence: Occurrence, tz: datetime.tzinfo | None = None) -> tuple:
    # unsaved occurrences have no ID yet and go last among simultaneous ones
    return (
        to_wall_clock(occurrence.start, tz),
        occurrence.id is None,
        occurrence.id if occurrence.id is not None else 0,
    )


def group_by_local_date(
    occurrences: Iterable[Occurrence],
    tz: datetime.tzinfo | None = None,
    span_days: bool = False,
) -> dict[datetime.date, list[Occurrence]]:
    """Group occurrences by the local date they start on.

    Parameters
    ----------
    tz
        The zone in which local dates are read, see `local_date`.
    span_days
        If set, an occurrence is also listed under every further date it
        spans, up to the local date of its end.

    Returns
    -------
    A mapping from dates to the occurrences on that date, ordered by start
    time then ID.
    """
    by_date = defaultdict(list)
    for occurrence in occurrences:
        first_day = local_date(occurrence.start, tz)
        last_day = local_date(occurrence.end, tz) if span_days else first_day
        for day in DateRange(start=first_day, end=max(first_day, last_day)).dates():
            by_date[day].append(occurrence)
    for day_occurrences in by_date.values():
        day_occurrences.sort(key=lambda o: _sort_key(o, tz))
    return dict(by_date)


def build_grid(
    period_anchor: PeriodAnchor,
    start_of_week: int | str,
    occurrences: Iterable[Occurrence],
    *,
    tz: datetime.tzinfo | None = None,
    today: datetime.date | None = None,
) -> list[CalendarCell]:
    """Lay out the month of `period_anchor` as a grid of day cells.

    Parameters
    ----------
    period_anchor
        Any date in the month to display. Missing or malformed anchors
        resolve to today.
    start_of_week
        The weekday of the first column, 0 for Sunday to 6 for Saturday.
    occurrences
        Already resolved occurrences, of one or many events. Those falling
        outside the grid are ignored.
    tz
        Zone used to read the local date of aware occurrences. Naive
        occurrences are taken as local wall-clock times.
    today
        Reference date for the `is_today` and `is_past` flags. Defaults to the
        current date.

    Returns
    -------
    One cell per displayed day, in order, row by row. The length is always a
    multiple of seven.

    Notes
    -----
    An occurrence is placed on the local date of its start even if it lasts
    several days. Use `group_by_local_date(..., span_days=True)` to list it on
    every day it spans.
    """
    anchor = normalize_anchor(period_anchor)
    today = today or today_()
    displayed = visible_range(anchor, start_of_week)
    if not displayed.contains(anchor):
        anchor = today_()
    by_date = group_by_local_date(occurrences, tz=tz)
    return [
        CalendarCell(
            date=day,
            is_in_current_period=(day.year, day.month) == (anchor.year, anchor.month),
            events=tuple(by_date.get(day, ())),
            is_today=day == today,
            is_past=day < today,
        )
        for day in displayed.dates()
    ]


def build_grid_from_config(
    config: GridConfig, occurrences: Iterable[Occurrence]
) -> list[CalendarCell]:
    return build_grid(
        config.period_anchor, config.start_of_week, occurrences, tz=config.tz
    )


def weeks(cells: list[CalendarCell]) -> list[list[CalendarCell]]:
    """Split grid cells in rows of seven."""
    return [
        cells[i : i + DAYS_PER_WEEK] for i in range(0, len(cells), DAYS_PER_WEEK)
    ]


def weekday_labels(
    start_of_week: int | str = DEFAULT_START_OF_WEEK,
    style: Literal["long", "short", "narrow"] = "short",
) -> list[str]:
    """Column headers of the grid, starting at `start_of_week`."""
    start = normalize_start_of_week(start_of_week)
    names = [
        WEEKDAY_NAMES[(start + i) % DAYS_PER_WEEK] for i in range(DAYS_PER_WEEK)
    ]
    match style:
        case "long":
            return names
        case "short":
            return [name[:3] for name in names]
        case "narrow":
            return [name[0] for name in names]
        case _:
            raise ValueError(f"Unsupported weekday label style: {style}")
