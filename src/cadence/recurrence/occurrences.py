#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime
from enum import StrEnum, auto
from typing import Any, Self

from pydantic import BaseModel, model_validator

from cadence.aliases import EventId, OccurrenceId, RuleStr
from cadence.recurrence.time_utils import TimeInterval


class OccurrenceKind(StrEnum):
    Single = auto()
    Master = auto()
    Generated = auto()


class Occurrence(BaseModel, frozen=True):
    """A dated instance of an event.

    Parameters
    ----------
    id
        Allocated by the storage when the row is first written.
    event_id
        The event this occurrence belongs to.
    kind
        Non-recurring events have exactly one `Single` occurrence. Recurring
        events have one `Master` occurrence, the first in the series and the
        only one storing the rule, and one `Generated` occurrence for each
        further recurrence.
    master_id
        For `Generated` occurrences, the `id` of the master they were expanded
        from. Not set otherwise.
    rrule
        The canonical rule string. Set on `Master` occurrences only.
    """

    id: OccurrenceId | None = None
    event_id: EventId
    start: datetime.datetime
    end: datetime.datetime
    all_day: bool = False
    kind: OccurrenceKind = OccurrenceKind.Single
    master_id: OccurrenceId | None = None
    rrule: RuleStr | None = None

    @model_validator(mode="after")
    def _check_kind_fields(self) -> Self:
        if (self.kind == OccurrenceKind.Generated) != (self.master_id is not None):
            raise ValueError("master_id must be set for generated occurrences only")
        if (self.kind == OccurrenceKind.Master) != bool(self.rrule):
            raise ValueError("rrule must be set for master occurrences only")
        return self

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(start=self.start, end=self.end)

    @property
    def duration(self) -> datetime.timedelta:
        return self.end - self.start

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(**data)

    def __str__(self) -> str:
        fmt = "%Y-%m-%d" if self.all_day else "%Y-%m-%d %H:%M"
        display = (
            f"{self.kind} occurrence of event {self.event_id} "
            f"from {self.start.strftime(fmt)} to {self.end.strftime(fmt)}"
        )
        if self.rrule:
            display += f" (repeats: {self.rrule})"
        return display
