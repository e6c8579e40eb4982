#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import polars as pl

from cadence.recurrence.occurrences import OccurrenceKind

# start and end hold naive local wall-clock times
OCCURRENCES_SCHEMA = {
    "id": pl.Int64,
    "event_id": pl.Int64,
    "start": pl.Datetime(time_unit="us"),
    "end": pl.Datetime(time_unit="us"),
    "all_day": pl.Boolean,
    "kind": pl.Enum([x for x in OccurrenceKind]),
    "master_id": pl.Int64,
    "rrule": pl.String,
}
