#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Keeps the stored occurrences of an event consistent with its recurrence rule.

Every change to the rule, or to the start and end of the master occurrence,
replaces the whole set of generated occurrences. The desired final state is
computed in memory first and then written in a single storage transaction, so
stale and fresh generated occurrences never coexist.

Regeneration is not safe under concurrent calls for the same event; callers
must serialise them per event.
"""

import datetime
import logging
from typing import NamedTuple

from cadence.aliases import EventId, RuleStr
from cadence.config import EngineConfig
from cadence.recurrence.exceptions import InvalidRangeError, NotFoundError, PartialWriteFailure
from cadence.recurrence.generator import generate
from cadence.recurrence.occurrences import Occurrence, OccurrenceKind
from cadence.recurrence.rules import RecurrenceRule, parse, serialize
from cadence.recurrence.time_utils import TimeInterval
from cadence.storage.occurrence_store import OccurrenceStorage, get_current_store

logger = logging.getLogger(__name__)


class RegenerationPlan(NamedTuple):
    """The complete set of occurrences an event should have.

    Parameters
    ----------
    master
        The master occurrence, or the single occurrence if the event does not
        recur. Keeps the ID of the stored row it replaces.
    generated
        The start and end of every further recurrence, in chronological order.
        Generated rows are only materialised once the master ID is known.
    """

    master: Occurrence
    generated: list[TimeInterval]

    @property
    def total(self) -> int:
        return 1 + len(self.generated)


def plan_regeneration(
    current: Occurrence,
    rule: RuleStr | RecurrenceRule | None,
    max_occurrences: int,
) -> RegenerationPlan:
    """Compute the occurrences of the event `current` belongs to under `rule`.

    An empty `rule`, or one that does not parse to a recurring rule, turns the
    event into a non-recurring one.
    """
    if not isinstance(rule, RecurrenceRule):
        rule = parse(rule)
    if not rule.recurs:
        single = current.model_copy(
            update={"kind": OccurrenceKind.Single, "rrule": None, "master_id": None}
        )
        return RegenerationPlan(master=single, generated=[])

    first, *rest = generate(current.start, current.end, rule, max_occurrences)
    master = current.model_copy(
        update={
            "start": first.start,
            "end": first.end,
            "kind": OccurrenceKind.Master,
            "rrule": serialize(rule),
            "master_id": None,
        }
    )
    return RegenerationPlan(master=master, generated=rest)


class RegenerationCoordinator:
    """Applies recurrence rules to the occurrences held by `storage`."""

    def __init__(self, storage: OccurrenceStorage, config: EngineConfig | None = None):
        self.storage = storage
        self.config = config or EngineConfig()

    def _get_master(self, event_id: EventId) -> Occurrence:
        current = self.storage.get_master_or_single(event_id)
        if current is None:
            raise NotFoundError(
                f"Event {event_id} has no occurrence. Save its schedule before "
                f"attaching a recurrence rule."
            )
        return current

    def _apply(self, event_id: EventId, plan: RegenerationPlan) -> int:
        try:
            with self.storage.transaction():
                deleted = self.storage.delete_generated(event_id)
                master_id = self.storage.upsert_master(plan.master)
                for interval in plan.generated:
                    self.storage.insert_generated(
                        Occurrence(
                            event_id=event_id,
                            start=interval.start,
                            end=interval.end,
                            all_day=plan.master.all_day,
                            kind=OccurrenceKind.Generated,
                            master_id=master_id,
                        )
                    )
        except Exception as e:
            raise PartialWriteFailure(event_id) from e
        logger.info(
            "Regenerated event %s: %d occurrences written, %d generated occurrences replaced",
            event_id,
            plan.total,
            deleted,
        )
        return plan.total

    def regenerate(
        self, event_id: EventId, rule: RuleStr | RecurrenceRule | None
    ) -> int:
        """Replace the occurrences of an event by those of `rule`.

        Parameters
        ----------
        event_id
            An event which already has a single or master occurrence.
        rule
            The new recurrence rule. When empty, the event stops recurring: its
            generated occurrences are deleted and the master becomes a single
            occurrence.

        Returns
        -------
        The number of occurrences the event has afterwards, the master included.

        Raises
        ------
        NotFoundError if the event has no single or master occurrence.
        PartialWriteFailure if the storage failed while writing. Retry the
        whole call.
        """
        current = self._get_master(event_id)
        plan = plan_regeneration(current, rule, self.config.max_occurrences)
        return self._apply(event_id, plan)

    def refresh(self, event_id: EventId) -> int:
        """Regenerate an event with the rule stored on its master occurrence."""
        return self.regenerate(event_id, self._get_master(event_id).rrule)

    def reschedule(
        self,
        event_id: EventId,
        start: datetime.datetime,
        end: datetime.datetime,
        all_day: bool | None = None,
    ) -> int:
        """Move the first occurrence of an event and regenerate the others
        from its stored rule.

        Raises
        ------
        InvalidRangeError if `end` is before `start`.
        """
        if end < start:
            raise InvalidRangeError(f"Event {event_id} would end before it starts")
        current = self._get_master(event_id)
        update = {"start": start, "end": end}
        if all_day is not None:
            update["all_day"] = all_day
        moved = current.model_copy(update=update)
        plan = plan_regeneration(moved, current.rrule, self.config.max_occurrences)
        return self._apply(event_id, plan)

    def create_schedule(
        self,
        event_id: EventId,
        start: datetime.datetime,
        end: datetime.datetime,
        all_day: bool = False,
    ) -> Occurrence:
        """Save the schedule of an event as a single occurrence.

        An existing schedule is replaced. If the event recurred, its rule and
        generated occurrences are dropped in the same transaction.

        Raises
        ------
        InvalidRangeError if `end` is before `start`.
        PartialWriteFailure if an existing schedule could not be replaced.
        """
        if end < start:
            raise InvalidRangeError(f"Event {event_id} would end before it starts")
        single = Occurrence(event_id=event_id, start=start, end=end, all_day=all_day)
        current = self.storage.get_master_or_single(event_id)
        if current is None:
            occurrence_id = self.storage.upsert_master(single)
            return single.model_copy(update={"id": occurrence_id})
        self._apply(event_id, RegenerationPlan(master=single, generated=[]))
        return single.model_copy(update={"id": current.id})


def _coordinator(config: EngineConfig | None) -> RegenerationCoordinator:
    return RegenerationCoordinator(get_current_store(), config)


def create_schedule(
    event_id: EventId,
    start: datetime.datetime,
    end: datetime.datetime,
    all_day: bool = False,
    config: EngineConfig | None = None,
) -> Occurrence:
    """`RegenerationCoordinator.create_schedule` against the current store."""
    return _coordinator(config).create_schedule(event_id, start, end, all_day)


def regenerate(
    event_id: EventId,
    rule: RuleStr | RecurrenceRule | None,
    config: EngineConfig | None = None,
) -> int:
    """`RegenerationCoordinator.regenerate` against the current store."""
    return _coordinator(config).regenerate(event_id, rule)


def refresh(event_id: EventId, config: EngineConfig | None = None) -> int:
    return _coordinator(config).refresh(event_id)


def reschedule(
    event_id: EventId,
    start: datetime.datetime,
    end: datetime.datetime,
    all_day: bool | None = None,
    config: EngineConfig | None = None,
) -> int:
    return _coordinator(config).reschedule(event_id, start, end, all_day)


def get_occurrences(event_id: EventId) -> list[Occurrence]:
    """All the occurrences of an event in the current store, in chronological order."""
    return get_current_store().get_all_by_event_id(event_id)
