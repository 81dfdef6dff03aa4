"""Test event model, stream decoding, and event indexing."""

from testoutput.events.decoder import (
    DecodeError,
    SinkWriteError,
    decode_event,
    decode_events,
    iter_events,
)
from testoutput.events.index import TestEvents, TestEventsMap
from testoutput.events.model import Action, TestEvent

__all__ = [
    "Action",
    "DecodeError",
    "SinkWriteError",
    "TestEvent",
    "TestEvents",
    "TestEventsMap",
    "decode_event",
    "decode_events",
    "iter_events",
]
