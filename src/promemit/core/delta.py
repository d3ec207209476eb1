"""Cumulative-to-delta conversion with expiring per-series state.

The calculator remembers the last cumulative value seen for every series
(name plus attribute set) and turns each new observation into the
difference since the previous one. State for series that stop reporting is
dropped after an idle age, so a series that comes back behaves like a new
one.
"""

import logging
import threading
import time
from dataclasses import dataclass

from promemit.core.config import (
    DEFAULT_DELTA_EXPIRATION_AGE,
    DEFAULT_DELTA_EXPIRATION_CHECK_INTERVAL,
)
from promemit.core.models import Attributes, Datapoint, DatapointKind

logger = logging.getLogger(__name__)

SeriesKey = tuple[str, frozenset[tuple[str, object]]]


def series_key(name: str, attributes: Attributes) -> SeriesKey:
    """Build the identity of a series, independent of attribute order."""
    return name, frozenset(attributes.items())


@dataclass
class _LastValue:
    value: float
    when: float


class DeltaCalculator:
    """Thread-safe implementation of DeltaConverterPort.

    Expired entries are swept lazily from count_metric once the check
    interval has elapsed. start() additionally runs the sweep on a daemon
    thread so idle series are released even when nothing is emitted.

    Args:
        expiration_age: Seconds an entry may go untouched before removal.
        expiration_check_interval: Minimum seconds between sweeps.
    """

    def __init__(
        self,
        expiration_age: float = DEFAULT_DELTA_EXPIRATION_AGE,
        expiration_check_interval: float = DEFAULT_DELTA_EXPIRATION_CHECK_INTERVAL,
    ) -> None:
        self._expiration_age = expiration_age
        self._expiration_check_interval = expiration_check_interval
        self._series: dict[SeriesKey, _LastValue] = {}
        self._lock = threading.Lock()
        self._last_sweep: float | None = None
        self._stop_event = threading.Event()
        self._sweeper: threading.Thread | None = None

    @property
    def expiration_age(self) -> float:
        return self._expiration_age

    @property
    def expiration_check_interval(self) -> float:
        return self._expiration_check_interval

    def __len__(self) -> int:
        with self._lock:
            return len(self._series)

    def count_metric(
        self,
        name: str,
        attributes: Attributes,
        value: float,
        now: float,
    ) -> Datapoint | None:
        """Convert a cumulative value into a count datapoint.

        Returns None for the first observation of a series, after a counter
        reset, and for the first observation after the series expired. In
        every case the new value becomes the baseline for the next call.
        """
        key = series_key(name, attributes)
        with self._lock:
            if self._last_sweep is None:
                self._last_sweep = now
            elif now - self._last_sweep > self._expiration_check_interval:
                self._sweep_locked(now)
            last = self._series.get(key)
            self._series[key] = _LastValue(value=value, when=now)

        if last is None:
            logger.debug("Priming delta state for series %s", name)
            return None
        if value < last.value:
            logger.debug(
                "Counter reset for series %s: %g after %g", name, value, last.value
            )
            return None
        return Datapoint(
            name=name,
            attributes=dict(attributes),
            value=value - last.value,
            timestamp=now,
            kind=DatapointKind.COUNT,
            interval=now - last.when,
        )

    def expire(self, now: float | None = None) -> int:
        """Drop every series not observed within the expiration age.

        Returns:
            Number of series removed.
        """
        if now is None:
            now = time.time()
        with self._lock:
            return self._sweep_locked(now)

    def _sweep_locked(self, now: float) -> int:
        cutoff = now - self._expiration_age
        expired = [k for k, v in self._series.items() if v.when < cutoff]
        for key in expired:
            del self._series[key]
        self._last_sweep = now
        if expired:
            logger.debug("Expired delta state for %d series", len(expired))
        return len(expired)

    # --- Background sweeping ---

    def start(self) -> None:
        """Start sweeping expired state on a background thread."""
        if self._sweeper is not None:
            return
        self._stop_event.clear()
        self._sweeper = threading.Thread(
            target=self._run_sweeper, name="promemit-delta-sweeper", daemon=True
        )
        self._sweeper.start()

    def stop(self) -> None:
        """Stop the background sweeper and wait for it to exit."""
        if self._sweeper is None:
            return
        self._stop_event.set()
        self._sweeper.join()
        self._sweeper = None

    def _run_sweeper(self) -> None:
        while not self._stop_event.wait(self._expiration_check_interval):
            self.expire()

    def __enter__(self) -> "DeltaCalculator":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
