#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Parsing and serialisation of the recurrence rules attached to events.

Only a small subset of the iCalendar RRULE grammar is supported: `FREQ`,
`INTERVAL`, `COUNT` and `UNTIL`. Parsing never fails; invalid fields are
dropped so that a scheduling form stays usable with partially invalid input.
"""

import datetime
import logging
from dataclasses import dataclass

from cadence.aliases import RuleStr
from cadence.constants import RULE_KEY_VALUE_SEPARATOR, RULE_SEPARATOR
from cadence.recurrence.time_utils import (
    END_OF_DAY,
    Frequency,
    format_ical_date,
    parse_ical_date,
)

logger = logging.getLogger(__name__)

BIWEEKLY = "BIWEEKLY"
"""User-facing alias for a weekly rule repeating every other week."""


@dataclass(frozen=True)
class RecurrenceRule:
    """
    Represents a recurrence rule for defining recurring events.

    Parameters
    ----------
    frequency
        How often the event occurs. `None` means the event does not recur.
    interval
        Interval between recurrences. For example, when using WEEKLY, an interval
        of 2 means once every two weeks.
    count
        Number of occurrences in the recurrence, the first one included. Must
        not be set if `until` is set.
    until
        The last recurrence is the greatest start that is less than or equal
        to this value. Naive, interpreted as local time.

    Notes
    -----
    The start date and time of the first occurrence are inherited from the
    event the rule is attached to.
    """

    frequency: Frequency | None
    interval: int = 1
    count: int | None = None
    until: datetime.datetime | None = None

    def __post_init__(self):
        if self.count is not None and self.until is not None:
            raise ValueError("Both 'count' and 'until' cannot be set. Choose one.")
        if self.interval < 1:
            raise ValueError(f"Interval must be a positive integer, got {self.interval}")
        if self.count is not None and self.count < 1:
            raise ValueError(f"Count must be a positive integer, got {self.count}")

    @property
    def recurs(self) -> bool:
        return self.frequency is not None

    @property
    def finite(self) -> bool:
        return self.count is not None or self.until is not None


NO_RECURRENCE = RecurrenceRule(frequency=None)


def _to_frequency(value: str) -> tuple[Frequency | None, int | None]:
    """Map a FREQ value to a frequency and, for aliases, the interval it implies."""
    value = value.strip().upper()
    if value == BIWEEKLY:
        return Frequency.WEEKLY, 2
    try:
        return Frequency(value.lower()), None
    except ValueError:
        return None, None


def _to_positive_int(value: str) -> int | None:
    try:
        number = int(value.strip())
    except ValueError:
        return None
    return number if number >= 1 else None


def parse(rule: RuleStr | None) -> RecurrenceRule:
    """Parse a rule string such as `FREQ=WEEKLY;INTERVAL=2;COUNT=10`.

    Notes
    -----
    1. Keys are case-insensitive and unknown keys are ignored.
    2. A missing or unrecognised `FREQ` yields `NO_RECURRENCE`.
    3. `INTERVAL` defaults to 1 when missing, non-numeric or smaller than 1.
    4. `COUNT` is ignored unless it is at least 1.
    5. `UNTIL` is `YYYYMMDD` or `YYYYMMDDTHHMMSS`, optionally suffixed by `Z`,
    which is dropped: the value is always read as local time. A date-only
    `UNTIL` includes the whole day.
    6. When both `COUNT` and `UNTIL` are valid, `COUNT` wins.
    """
    if not rule:
        return NO_RECURRENCE

    frequency, alias_interval = None, None
    interval, count, until = 1, None, None
    for token in rule.split(RULE_SEPARATOR):
        key, sep, value = token.partition(RULE_KEY_VALUE_SEPARATOR)
        if not sep:
            continue
        match key.strip().upper():
            case "FREQ":
                frequency, alias_interval = _to_frequency(value)
                if frequency is None:
                    logger.warning("Unrecognised recurrence frequency %r", value)
            case "INTERVAL":
                interval = _to_positive_int(value) or 1
            case "COUNT":
                count = _to_positive_int(value)
            case "UNTIL":
                until = parse_ical_date(value)
                if until is None:
                    logger.warning("Dropping unparseable UNTIL value %r", value)
            case _:
                logger.debug("Ignoring unsupported recurrence field %r", token)

    if frequency is None:
        return NO_RECURRENCE
    if count is not None:
        until = None
    return RecurrenceRule(
        frequency=frequency,
        interval=alias_interval or interval,
        count=count,
        until=until,
    )


def serialize(rule: RecurrenceRule) -> RuleStr:
    """Write `rule` in canonical form, `FREQ=...[;INTERVAL=n][;COUNT=n|;UNTIL=...]`.

    `INTERVAL` is omitted when 1 and `NO_RECURRENCE` is written as an empty string.
    """
    if not rule.recurs:
        return ""
    parts = [f"FREQ={rule.frequency.upper()}"]
    if rule.interval > 1:
        parts.append(f"INTERVAL={rule.interval}")
    if rule.count is not None:
        parts.append(f"COUNT={rule.count}")
    elif rule.until is not None:
        parts.append(f"UNTIL={format_ical_date(rule.until)}")
    return RULE_SEPARATOR.join(parts)


def build_rule(
    frequency: str | Frequency | None,
    interval: int | str | None = 1,
    count: int | str | None = None,
    until: datetime.date | datetime.datetime | str | None = None,
) -> RecurrenceRule:
    """Create a rule from the values of a recurrence form.

    Parameters
    ----------
    frequency
        One of the `Frequency` values or `BIWEEKLY`, case-insensitive. Anything
        else means the event does not repeat.
    interval
        Ignored for `BIWEEKLY`, otherwise values smaller than 1 or not numeric are read as 1.
    count
        Used when at least 1, in which case `until` is ignored.
    until
        The last day on which the event may recur, as a date or a `YYYY-MM-DD`
        string. Datetimes are kept as given.
    """
    if not frequency:
        return NO_RECURRENCE
    freq, alias_interval = _to_frequency(str(frequency))
    if freq is None:
        return NO_RECURRENCE
    # form fields may hand over numbers as strings
    if interval is not None:
        interval = _to_positive_int(str(interval))
    interval = alias_interval or interval or 1
    if count is not None:
        count = _to_positive_int(str(count))
    if count is not None or until is None:
        return RecurrenceRule(frequency=freq, interval=interval, count=count)

    if isinstance(until, str):
        until = parse_ical_date(until.replace("-", ""))
    elif not isinstance(until, datetime.datetime):
        until = datetime.datetime.combine(until, END_OF_DAY)
    return RecurrenceRule(frequency=freq, interval=interval, until=until)
