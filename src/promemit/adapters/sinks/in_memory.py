"""In-memory sink for datapoints."""

import threading

from promemit.core.models import Datapoint


class InMemorySink:
    """In-memory implementation of SinkPort.

    Stores datapoints in a list. Suitable for testing and
    low-volume applications where delivery is not required.
    """

    def __init__(self) -> None:
        self._datapoints: list[Datapoint] = []
        self._lock = threading.Lock()

    def record(self, datapoint: Datapoint) -> None:
        """Record a datapoint."""
        with self._lock:
            self._datapoints.append(datapoint)

    def datapoints(self) -> list[Datapoint]:
        """Return recorded datapoints in recording order."""
        with self._lock:
            return list(self._datapoints)

    def clear(self) -> None:
        """Forget all recorded datapoints."""
        with self._lock:
            self._datapoints.clear()

    def __len__(self) -> int:
        return len(self._datapoints)
