#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
# the ID of the event an occurrence belongs to; owned by the
# caller, the engine never allocates it
EventId = int
# the ID of a single occurrence row, allocated by the storage
OccurrenceId = int
# a recurrence rule in its string form, eg FREQ=WEEKLY;INTERVAL=2;COUNT=5
RuleStr = str
