"""Ring buffer sink for datapoints.

Provides bounded in-memory storage that automatically evicts oldest
datapoints when the buffer is full. Useful for production services that
need predictable memory usage.
"""

import threading
from collections import deque

from promemit.core.models import Datapoint


class RingBufferSink:
    """Ring buffer implementation of SinkPort.

    Stores datapoints in a fixed-size circular buffer. When the buffer
    is full, the oldest datapoint is automatically evicted to make room for
    new ones.

    Args:
        max_size: Maximum number of datapoints to keep.
    """

    def __init__(self, max_size: int) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self._buffer: deque[Datapoint] = deque(maxlen=max_size)
        self._lock = threading.Lock()

    @property
    def max_size(self) -> int:
        return self._buffer.maxlen or 0

    def record(self, datapoint: Datapoint) -> None:
        """Record a datapoint, evicting the oldest one if full."""
        with self._lock:
            self._buffer.append(datapoint)

    def datapoints(self, since: float = 0) -> list[Datapoint]:
        """Return buffered datapoints with timestamp > since.

        Ordered by timestamp ascending.
        """
        with self._lock:
            filtered = [d for d in self._buffer if d.timestamp > since]
        return sorted(filtered, key=lambda d: d.timestamp)
