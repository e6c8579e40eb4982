#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import contextlib
import copy
import datetime
import logging
from typing import Any, ContextManager, Iterator, Protocol, cast, runtime_checkable

import polars as pl

from cadence.aliases import EventId, OccurrenceId
from cadence.recurrence.exceptions import NotFoundError
from cadence.recurrence.occurrences import Occurrence, OccurrenceKind
from cadence.recurrence.time_utils import DateRange, to_wall_clock
from cadence.storage.database_schemas import OCCURRENCES_SCHEMA
from cadence.storage.utils import (
    NOT_GIVEN,
    at_least,
    at_most,
    equals,
    one_of,
    select_rows,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class OccurrenceStorage(Protocol):
    """The narrow interface through which the engine persists occurrences.

    Implementations own ID allocation. `transaction` must make the writes issued
    inside it visible all together or not at all.
    """

    def get_master_or_single(self, event_id: EventId) -> Occurrence | None: ...

    def delete_generated(self, event_id: EventId) -> int: ...

    def upsert_master(self, occurrence: Occurrence) -> OccurrenceId: ...

    def insert_generated(self, occurrence: Occurrence) -> OccurrenceId: ...

    def transaction(self) -> ContextManager[None]: ...


class OccurrenceStore:
    """In-memory occurrence table backed by a polars dataframe.

    Instants are stored as naive local wall-clock times: aware datetimes are
    converted to the machine's local zone on write.
    """

    schema: dict[str, Any] = OCCURRENCES_SCHEMA

    def __init__(self):
        self._db = pl.DataFrame(schema=self.schema)
        self._next_id: OccurrenceId = 1

    def get_database(self) -> pl.DataFrame:
        """The occurrence table. Treat it as immutable; use the store methods
        to modify it."""
        return self._db

    def _allocate_id(self) -> OccurrenceId:
        occurrence_id = self._next_id
        self._next_id += 1
        return occurrence_id

    def _append(self, occurrence: Occurrence) -> None:
        row = occurrence.model_dump()
        row["kind"] = str(row["kind"])
        row["start"] = to_wall_clock(row["start"])
        row["end"] = to_wall_clock(row["end"])
        self._db = self._db.vstack(pl.DataFrame([row], schema=self.schema))

    @staticmethod
    def _to_occurrences(dataframe: pl.DataFrame) -> list[Occurrence]:
        occurrences = [Occurrence.from_dict(r) for r in dataframe.to_dicts()]
        occurrences.sort(key=lambda o: (o.start, o.id))
        return occurrences

    def get_by_id(self, occurrence_id: OccurrenceId) -> Occurrence:
        """Raises
        ------
        NotFoundError if no occurrence has `occurrence_id`.
        """
        matches = select_rows(self._db, [("id", occurrence_id, equals)])
        if matches.is_empty():
            raise NotFoundError(f"No occurrence with id {occurrence_id}")
        return self._to_occurrences(matches)[0]

    def get_master_or_single(self, event_id: EventId) -> Occurrence | None:
        # only generated occurrences point at a master
        matches = select_rows(
            self._db,
            [
                ("event_id", event_id, equals),
                ("master_id", None, equals),
            ],
        )
        if matches.is_empty():
            return None
        assert matches.height == 1, f"Event {event_id} has {matches.height} masters"
        return self._to_occurrences(matches)[0]

    def get_all_by_event_id(self, event_id: EventId) -> list[Occurrence]:
        """All the occurrences of an event, in chronological order."""
        return self._to_occurrences(
            select_rows(self._db, [("event_id", event_id, equals)])
        )

    def occurrences_between(
        self,
        start_date: datetime.date,
        end_date: datetime.date,
        event_ids: list[EventId] | None = None,
    ) -> list[Occurrence]:
        """Occurrences starting on any date from `start_date` to `end_date`,
        both included. Pass the `visible_range` of a calendar grid to fetch
        everything the grid displays.

        Parameters
        ----------
        event_ids
            If specified, only occurrences of these events are returned.
        """
        window = DateRange(start=start_date, end=end_date)
        in_window = select_rows(
            self._db,
            [
                (
                    "start",
                    datetime.datetime.combine(window.start, datetime.time.min),
                    at_least,
                ),
                (
                    "start",
                    datetime.datetime.combine(window.end, datetime.time.max),
                    at_most,
                ),
                (
                    "event_id",
                    NOT_GIVEN if event_ids is None else event_ids,
                    one_of,
                ),
            ],
        )
        return self._to_occurrences(in_window)

    def upsert_master(self, occurrence: Occurrence) -> OccurrenceId:
        """Write the master or single occurrence of an event, replacing the
        existing one in place (its ID is kept).

        Returns
        -------
        The ID of the written occurrence.
        """
        if occurrence.kind == OccurrenceKind.Generated:
            raise ValueError("Generated occurrences must be written with insert_generated")
        existing = self.get_master_or_single(occurrence.event_id)
        if existing is None:
            occurrence_id = self._allocate_id()
        else:
            occurrence_id = existing.id
            self._db = self._db.filter(pl.col("id") != occurrence_id)
        self._append(occurrence.model_copy(update={"id": occurrence_id}))
        return occurrence_id

    def insert_generated(self, occurrence: Occurrence) -> OccurrenceId:
        """Add a generated occurrence.

        Raises
        ------
        NotFoundError if the master occurrence it refers to does not exist.
        """
        master = self.get_master_or_single(occurrence.event_id)
        if master is None or master.id != occurrence.master_id:
            raise NotFoundError(
                f"Master occurrence {occurrence.master_id} of event "
                f"{occurrence.event_id} does not exist"
            )
        occurrence_id = self._allocate_id()
        self._append(occurrence.model_copy(update={"id": occurrence_id}))
        return occurrence_id

    def delete_generated(self, event_id: EventId) -> int:
        """Delete the generated occurrences of an event.

        Returns
        -------
        The number of deleted rows, possibly 0.
        """
        predicate = (pl.col("event_id") == event_id) & pl.col("master_id").is_not_null()
        return self._delete(predicate)

    def delete_by_event_id(self, event_id: EventId) -> int:
        """Delete every occurrence of an event."""
        return self._delete(pl.col("event_id") == event_id)

    def _delete(self, predicate: pl.Expr) -> int:
        before = self._db.height
        self._db = self._db.filter(~predicate)
        return before - self._db.height

    @contextlib.contextmanager
    def transaction(self) -> Iterator[None]:
        """Apply the writes made inside the block atomically: if the block
        raises, the table is restored to its state on entry."""
        snapshot, next_id = self._db, self._next_id
        try:
            yield
        except Exception:
            logger.debug("Rolling back occurrence store transaction")
            self._db, self._next_id = snapshot, next_id
            raise

    def to_dict(self) -> dict[str, Any]:
        """Serializes the store to a dictionary of JSON-friendly values."""

        def convert_datetime(value: Any) -> Any:
            if isinstance(value, (datetime.date, datetime.datetime)):
                return value.isoformat()
            return value

        return {
            "next_id": self._next_id,
            "occurrences": [
                {k: convert_datetime(v) for k, v in record.items()}
                for record in self._db.to_dicts()
            ],
        }

    @classmethod
    def from_dict(cls, serialized_dict: dict[str, Any]) -> "OccurrenceStore":
        """Load a serialized dict produced by `to_dict`."""
        store = cls()
        records = copy.deepcopy(serialized_dict["occurrences"])
        for record in records:
            for key in ("start", "end"):
                record[key] = datetime.datetime.fromisoformat(record[key])
        if records:
            store._db = pl.DataFrame(records, schema=cls.schema)
        store._next_id = serialized_dict["next_id"]
        return store


def _create_global_store() -> OccurrenceStore:
    """Lazily set up the process-wide store."""
    store = OccurrenceStore()
    globals()["_global_store"] = store
    return store


def get_current_store() -> OccurrenceStore:
    """Getter for the process-wide store used by the module-level regeneration
    helpers."""
    global_store = globals().get("_global_store")
    if global_store is None:
        return _create_global_store()
    return cast(OccurrenceStore, global_store)


def set_current_store(store: OccurrenceStore) -> None:
    globals()["_global_store"] = store


@contextlib.contextmanager
def new_store(store: OccurrenceStore | None = None) -> Iterator[OccurrenceStore]:
    """Handy context manager which installs `store` (a fresh one if not given)
    as the current store, and reverts after context exit."""
    original_store = get_current_store()
    store = store if store is not None else OccurrenceStore()
    try:
        set_current_store(store)
        yield store
    # Release resource even when exceptions are raised
    finally:
        set_current_store(original_store)
