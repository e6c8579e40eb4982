#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Expansion of a recurrence rule into the (start, end) pairs of its occurrences."""

import datetime

from cadence.constants import MAX_OCCURRENCES
from cadence.recurrence.exceptions import InvalidRangeError
from cadence.recurrence.rules import RecurrenceRule
from cadence.recurrence.time_utils import Frequency, TimeInterval, shift


def advance(
    origin: datetime.datetime,
    frequency: Frequency,
    interval: int,
    n: int = 1,
) -> datetime.datetime:
    """Start of the `n`-th recurrence of an event first starting at `origin`.

    Offsets are always computed from `origin` rather than from the previous
    recurrence, so month-end clamping never accumulates: a monthly event on
    Jan 31 recurs on Feb 29, Mar 31, Apr 30 in 2024.
    """
    return shift(origin, frequency, interval * n)


def _attach_tz(until: datetime.datetime, start: datetime.datetime) -> datetime.datetime:
    # UNTIL is local wall time; compare on the clock of the event itself
    if start.tzinfo is not None and until.tzinfo is None:
        return until.replace(tzinfo=start.tzinfo)
    if start.tzinfo is None and until.tzinfo is not None:
        return until.replace(tzinfo=None)
    return until


def generate(
    start: datetime.datetime,
    end: datetime.datetime,
    rule: RecurrenceRule,
    max_occurrences: int = MAX_OCCURRENCES,
) -> list[TimeInterval]:
    """Expand `rule` into the occurrences of an event spanning `start` to `end`.

    Parameters
    ----------
    start, end
        The first occurrence. Its duration is shared by every occurrence.
    rule
        The recurrence rule. When it does not recur, only the first occurrence
        is returned.
    max_occurrences
        Hard bound on the number of occurrences returned, regardless of
        `rule.count` or how distant `rule.until` is. Occurrences past the bound
        are silently not produced.

    Returns
    -------
    The occurrences in chronological order. The first one is always
    `(start, end)`.

    Raises
    ------
    InvalidRangeError if `end` is before `start`.
    """
    if end < start:
        raise InvalidRangeError(
            f"Occurrence ends at {end.isoformat()} before it starts at {start.isoformat()}"
        )
    duration = end - start
    occurrences = [TimeInterval(start=start, end=end)]
    if not rule.recurs:
        return occurrences

    limit = max(1, max_occurrences)
    if rule.count is not None:
        limit = min(limit, rule.count)
    until = _attach_tz(rule.until, start) if rule.until is not None else None

    n = 1
    while len(occurrences) < limit:
        next_start = advance(start, rule.frequency, rule.interval, n)
        if until is not None and next_start > until:
            break
        occurrences.append(TimeInterval(start=next_start, end=next_start + duration))
        n += 1
    return occurrences
