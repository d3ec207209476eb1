"""Sink adapters implementing SinkPort."""

from promemit.adapters.sinks.in_memory import InMemorySink
from promemit.adapters.sinks.ring_buffer import RingBufferSink
from promemit.adapters.sinks.sqlite import SQLiteSink

__all__ = [
    "InMemorySink",
    "RingBufferSink",
    "SQLiteSink",
]
