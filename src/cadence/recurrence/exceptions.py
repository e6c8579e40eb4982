#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
from cadence.aliases import EventId


class CadenceError(Exception):
    pass


class InvalidRangeError(CadenceError, ValueError):
    """An occurrence ends before it starts."""


class NotFoundError(CadenceError, LookupError):
    """An event has no master or single occurrence to regenerate from."""


class PartialWriteFailure(CadenceError):
    """The storage failed while a regeneration was being applied.

    Retry the whole regeneration; never patch the partial result.
    """

    def __init__(self, event_id: EventId, message: str | None = None):
        self.event_id = event_id
        super().__init__(
            message or f"Could not persist the occurrences of event {event_id}"
        )


class ConfigurationError(CadenceError, ValueError):
    pass
