"""Shared test fixtures for all test modules."""

import time
from collections.abc import Callable
from pathlib import Path

import pytest

from promemit.adapters.sinks.in_memory import InMemorySink
from promemit.core.delta import DeltaCalculator
from promemit.core.emitter import TelemetryEmitter
from tests.helpers import FROZEN_NOW


@pytest.fixture
def datapoints_db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for SQLite sink tests."""
    return str(tmp_path / "datapoints.db")


@pytest.fixture
def sink() -> InMemorySink:
    """Fixture providing an empty in-memory sink."""
    return InMemorySink()


@pytest.fixture
def delta() -> DeltaCalculator:
    """Fixture providing a fresh delta calculator."""
    return DeltaCalculator()


@pytest.fixture
def emitter(sink: InMemorySink, delta: DeltaCalculator) -> TelemetryEmitter:
    """Telemetry emitter wired to the in-memory sink."""
    return TelemetryEmitter(sink, delta, percentiles=[50.0, 95.0])


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> Callable[[float], None]:
    """Freeze time.time() at FROZEN_NOW.

    Returns a callable that moves the frozen clock to a new timestamp.
    """
    current = {"now": FROZEN_NOW}
    monkeypatch.setattr(time, "time", lambda: current["now"])

    def _set(now: float) -> None:
        current["now"] = now

    return _set
