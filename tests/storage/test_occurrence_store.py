#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime
import json

import pytest
from dateutil import tz

from cadence.recurrence.exceptions import NotFoundError
from cadence.recurrence.occurrences import Occurrence, OccurrenceKind
from cadence.storage.occurrence_store import (
    OccurrenceStorage,
    OccurrenceStore,
    get_current_store,
    new_store,
)

START = datetime.datetime(2024, 5, 6, 10, 0)
END = datetime.datetime(2024, 5, 6, 11, 0)


def _master(event_id: int = 1, start: datetime.datetime = START) -> Occurrence:
    return Occurrence(
        event_id=event_id,
        start=start,
        end=start + datetime.timedelta(hours=1),
        kind=OccurrenceKind.Master,
        rrule="FREQ=DAILY",
    )


def _generated(master_id: int, days: int, event_id: int = 1) -> Occurrence:
    return Occurrence(
        event_id=event_id,
        start=START + datetime.timedelta(days=days),
        end=END + datetime.timedelta(days=days),
        kind=OccurrenceKind.Generated,
        master_id=master_id,
    )


def test_store_implements_storage_protocol(store: OccurrenceStore):
    assert isinstance(store, OccurrenceStorage)


def test_autouse_fixture_installs_store(store: OccurrenceStore):
    assert get_current_store() is store


def test_new_store_restores_previous_store(store: OccurrenceStore):
    replacement = OccurrenceStore()
    with new_store(replacement) as current:
        assert current is replacement
        assert get_current_store() is replacement
    assert get_current_store() is store


def test_upsert_master_allocates_then_keeps_id(store: OccurrenceStore):
    master_id = store.upsert_master(_master())
    assert store.get_by_id(master_id).kind == OccurrenceKind.Master
    moved = _master(start=START + datetime.timedelta(hours=2))
    assert store.upsert_master(moved) == master_id
    assert store.get_database().height == 1
    assert store.get_master_or_single(1).start == moved.start


def test_upsert_master_rejects_generated(store: OccurrenceStore):
    master_id = store.upsert_master(_master())
    with pytest.raises(ValueError):
        store.upsert_master(_generated(master_id, 1))


def test_insert_generated_requires_master(store: OccurrenceStore):
    with pytest.raises(NotFoundError):
        store.insert_generated(_generated(master_id=1, days=1))
    master_id = store.upsert_master(_master())
    with pytest.raises(NotFoundError):
        store.insert_generated(_generated(master_id=master_id + 10, days=1))


def test_get_by_id_unknown(store: OccurrenceStore):
    with pytest.raises(NotFoundError):
        store.get_by_id(123)


def test_get_master_or_single_of_unknown_event(store: OccurrenceStore):
    assert store.get_master_or_single(99) is None


def test_delete_generated_keeps_master(store: OccurrenceStore):
    master_id = store.upsert_master(_master())
    for days in (1, 2, 3):
        store.insert_generated(_generated(master_id, days))
    other_master_id = store.upsert_master(_master(event_id=2))
    store.insert_generated(_generated(other_master_id, 1, event_id=2))

    assert store.delete_generated(1) == 3
    assert store.delete_generated(1) == 0
    assert [o.id for o in store.get_all_by_event_id(1)] == [master_id]
    assert len(store.get_all_by_event_id(2)) == 2


def test_delete_by_event_id(store: OccurrenceStore):
    master_id = store.upsert_master(_master())
    store.insert_generated(_generated(master_id, 1))
    assert store.delete_by_event_id(1) == 2
    assert store.get_all_by_event_id(1) == []


def test_occurrences_between(store: OccurrenceStore):
    master_id = store.upsert_master(_master())
    for days in range(1, 10):
        store.insert_generated(_generated(master_id, days))
    store.upsert_master(_master(event_id=2, start=datetime.datetime(2024, 5, 8, 23, 59)))

    found = store.occurrences_between(datetime.date(2024, 5, 8), datetime.date(2024, 5, 10))
    assert [(o.event_id, o.start.day) for o in found] == [(1, 8), (2, 8), (1, 9), (1, 10)]

    only_second = store.occurrences_between(
        datetime.date(2024, 5, 1), datetime.date(2024, 5, 31), event_ids=[2]
    )
    assert [o.event_id for o in only_second] == [2]


def test_aware_instants_are_stored_as_wall_clock(store: OccurrenceStore):
    aware = datetime.datetime(2024, 5, 6, 10, 0, tzinfo=tz.UTC)
    store.upsert_master(
        Occurrence(event_id=3, start=aware, end=aware + datetime.timedelta(hours=1))
    )
    stored = store.get_master_or_single(3)
    assert stored.start.tzinfo is None
    assert stored.start == aware.astimezone(tz.tzlocal()).replace(tzinfo=None)


def test_transaction_rolls_back_on_error(store: OccurrenceStore):
    master_id = store.upsert_master(_master())
    store.insert_generated(_generated(master_id, 1))
    snapshot = store.get_all_by_event_id(1)
    with pytest.raises(RuntimeError):
        with store.transaction():
            store.delete_generated(1)
            store.insert_generated(_generated(master_id, 5))
            raise RuntimeError("boom")
    assert store.get_all_by_event_id(1) == snapshot
    # IDs allocated in the failed block are reused
    assert store.insert_generated(_generated(master_id, 2)) == master_id + 2


def test_transaction_commits(store: OccurrenceStore):
    master_id = store.upsert_master(_master())
    with store.transaction():
        store.insert_generated(_generated(master_id, 1))
    assert len(store.get_all_by_event_id(1)) == 2


def test_serialization(store: OccurrenceStore):
    master_id = store.upsert_master(_master())
    store.insert_generated(_generated(master_id, 1))
    serialized = json.loads(json.dumps(store.to_dict()))
    restored = OccurrenceStore.from_dict(serialized)
    assert restored.get_all_by_event_id(1) == store.get_all_by_event_id(1)
    assert restored.upsert_master(_master(event_id=5)) == store.upsert_master(
        _master(event_id=5)
    )


def test_serialization_of_empty_store(store: OccurrenceStore):
    restored = OccurrenceStore.from_dict(store.to_dict())
    assert restored.get_database().is_empty()
