#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime
from typing import Iterator

import pytest

from cadence.config import EngineConfig
from cadence.recurrence.regeneration import RegenerationCoordinator
from cadence.storage.occurrence_store import OccurrenceStore, new_store

EVENT_ID = 42


@pytest.fixture(scope="function", autouse=True)
def store() -> Iterator[OccurrenceStore]:
    """Autouse fixture which installs a fresh occurrence store as the
    current store before each test function and restores the previous one
    afterwards."""
    with new_store() as test_store:
        yield test_store


@pytest.fixture
def event_start() -> datetime.datetime:
    return datetime.datetime(2024, 9, 26, 12, 0, 0)


@pytest.fixture
def event_end(event_start: datetime.datetime) -> datetime.datetime:
    return event_start + datetime.timedelta(hours=1, minutes=30)


@pytest.fixture
def coordinator(store: OccurrenceStore) -> RegenerationCoordinator:
    return RegenerationCoordinator(store, EngineConfig())


@pytest.fixture
def scheduled_event(
    coordinator: RegenerationCoordinator,
    event_start: datetime.datetime,
    event_end: datetime.datetime,
) -> int:
    coordinator.create_schedule(EVENT_ID, event_start, event_end)
    return EVENT_ID
