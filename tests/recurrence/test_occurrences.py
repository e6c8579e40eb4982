#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime

import pytest
from pydantic import ValidationError

from cadence.recurrence.occurrences import Occurrence, OccurrenceKind

START = datetime.datetime(2024, 10, 2, 9, 0)
END = datetime.datetime(2024, 10, 2, 10, 0)


def test_single_is_the_default_kind():
    occurrence = Occurrence(event_id=1, start=START, end=END)
    assert occurrence.kind == OccurrenceKind.Single
    assert occurrence.id is None
    assert occurrence.duration == datetime.timedelta(hours=1)


@pytest.mark.parametrize(
    "fields",
    [
        {"kind": OccurrenceKind.Generated},
        {"kind": OccurrenceKind.Single, "master_id": 3},
        {"kind": OccurrenceKind.Master},
        {"kind": OccurrenceKind.Master, "rrule": ""},
        {"kind": OccurrenceKind.Single, "rrule": "FREQ=DAILY"},
        {"kind": OccurrenceKind.Generated, "master_id": 3, "rrule": "FREQ=DAILY"},
    ],
)
def test_kind_specific_fields_are_enforced(fields: dict):
    with pytest.raises(ValidationError):
        Occurrence(event_id=1, start=START, end=END, **fields)


def test_occurrences_are_immutable():
    occurrence = Occurrence(event_id=1, start=START, end=END)
    with pytest.raises(ValidationError):
        occurrence.start = END
    moved = occurrence.model_copy(update={"start": END})
    assert moved.start == END
    assert occurrence.start == START


def test_kind_is_parsed_from_its_value():
    occurrence = Occurrence.from_dict(
        {
            "id": 7,
            "event_id": 1,
            "start": START,
            "end": END,
            "all_day": False,
            "kind": "generated",
            "master_id": 6,
            "rrule": None,
        }
    )
    assert occurrence.kind == OccurrenceKind.Generated


def test_str():
    master = Occurrence(
        event_id=1, start=START, end=END, kind=OccurrenceKind.Master, rrule="FREQ=WEEKLY"
    )
    assert str(master) == (
        "master occurrence of event 1 from 2024-10-02 09:00 to 2024-10-02 10:00 "
        "(repeats: FREQ=WEEKLY)"
    )
