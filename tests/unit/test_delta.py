"""Tests for DeltaCalculator."""

import threading

import pytest

from promemit.core.delta import DeltaCalculator, series_key
from promemit.core.models import DatapointKind
from promemit.core.ports import DeltaConverterPort

pytestmark = [pytest.mark.core, pytest.mark.tier(1)]


class TestCountMetric:
    """Tests for DeltaCalculator.count_metric()."""

    def test_implements_delta_converter_port(self) -> None:
        """DeltaCalculator must satisfy DeltaConverterPort protocol."""
        assert isinstance(DeltaCalculator(), DeltaConverterPort)

    def test_first_observation_is_suppressed(self) -> None:
        """Nothing can be subtracted from the first value of a series."""
        dc = DeltaCalculator()
        assert dc.count_metric("requests_total", {}, 10.0, 1000.0) is None
        assert len(dc) == 1

    def test_second_observation_yields_delta(self) -> None:
        """The second value yields the difference as a count."""
        dc = DeltaCalculator()
        dc.count_metric("requests_total", {"method": "GET"}, 10.0, 1000.0)

        dp = dc.count_metric("requests_total", {"method": "GET"}, 15.0, 1030.0)

        assert dp is not None
        assert dp.value == 5.0
        assert dp.kind is DatapointKind.COUNT
        assert dp.timestamp == 1030.0
        assert dp.interval == 30.0
        assert dp.attributes == {"method": "GET"}

    def test_unchanged_value_yields_zero_delta(self) -> None:
        """An idle counter reports a zero delta."""
        dc = DeltaCalculator()
        dc.count_metric("requests_total", {}, 10.0, 1000.0)
        dp = dc.count_metric("requests_total", {}, 10.0, 1010.0)
        assert dp is not None
        assert dp.value == 0.0

    def test_counter_reset_is_suppressed_and_rebased(self) -> None:
        """A drop in value is a reset: skipped, then deltas from the new base."""
        dc = DeltaCalculator()
        dc.count_metric("requests_total", {}, 100.0, 1000.0)

        assert dc.count_metric("requests_total", {}, 3.0, 1010.0) is None

        dp = dc.count_metric("requests_total", {}, 7.0, 1020.0)
        assert dp is not None
        assert dp.value == 4.0

    def test_series_are_distinguished_by_attributes(self) -> None:
        """Different attribute sets are separate series."""
        dc = DeltaCalculator()
        dc.count_metric("requests_total", {"method": "GET"}, 10.0, 1000.0)

        assert dc.count_metric("requests_total", {"method": "POST"}, 50.0, 1010.0) is None
        assert len(dc) == 2

    def test_attribute_order_does_not_matter(self) -> None:
        """Series identity ignores attribute insertion order."""
        dc = DeltaCalculator()
        dc.count_metric("m", {"a": 1, "b": 2}, 1.0, 1000.0)
        dp = dc.count_metric("m", {"b": 2, "a": 1}, 3.0, 1010.0)
        assert dp is not None
        assert dp.value == 2.0

    def test_returned_attributes_are_a_copy(self) -> None:
        """Mutating the datapoint attributes does not touch the caller's map."""
        dc = DeltaCalculator()
        attrs = {"method": "GET"}
        dc.count_metric("m", attrs, 1.0, 1000.0)
        dp = dc.count_metric("m", attrs, 2.0, 1010.0)
        assert dp is not None
        dp.attributes["extra"] = True
        assert attrs == {"method": "GET"}


class TestExpiration:
    """Tests for expiration of idle series."""

    def test_expired_series_behaves_like_new(self) -> None:
        """A series seen again after expiring is primed once more."""
        dc = DeltaCalculator(expiration_age=60.0, expiration_check_interval=30.0)
        dc.count_metric("m", {}, 1.0, 1000.0)

        # Another series keeps the calculator busy past the check interval.
        dc.count_metric("other", {}, 1.0, 1100.0)

        assert dc.count_metric("m", {}, 5.0, 1100.0) is None
        dp = dc.count_metric("m", {}, 8.0, 1110.0)
        assert dp is not None
        assert dp.value == 3.0

    def test_recent_series_survive_sweep(self) -> None:
        """Series seen within the expiration age are kept."""
        dc = DeltaCalculator(expiration_age=60.0, expiration_check_interval=10.0)
        dc.count_metric("m", {}, 1.0, 1000.0)
        dc.count_metric("other", {}, 1.0, 1050.0)

        dp = dc.count_metric("m", {}, 4.0, 1055.0)
        assert dp is not None
        assert dp.value == 3.0

    def test_no_sweep_before_check_interval(self) -> None:
        """Stale entries are only dropped once the check interval elapses."""
        dc = DeltaCalculator(expiration_age=10.0, expiration_check_interval=300.0)
        dc.count_metric("m", {}, 1.0, 1000.0)

        dp = dc.count_metric("m", {}, 2.0, 1100.0)

        assert dp is not None
        assert dp.value == 1.0

    def test_expire_returns_removed_count(self) -> None:
        """expire() forces a sweep and reports how many series it dropped."""
        dc = DeltaCalculator(expiration_age=60.0)
        dc.count_metric("a", {}, 1.0, 1000.0)
        dc.count_metric("b", {}, 1.0, 1000.0)
        dc.count_metric("c", {}, 1.0, 1050.0)

        assert dc.expire(now=1070.0) == 2
        assert len(dc) == 1

    def test_properties_expose_configuration(self) -> None:
        """Expiration settings are readable."""
        dc = DeltaCalculator(expiration_age=12.0, expiration_check_interval=3.0)
        assert dc.expiration_age == 12.0
        assert dc.expiration_check_interval == 3.0


class TestBackgroundSweeper:
    """Tests for the background sweeper thread."""

    def test_start_and_stop(self) -> None:
        """The sweeper thread starts and stops cleanly."""
        dc = DeltaCalculator(expiration_check_interval=0.01)
        dc.start()
        dc.start()  # idempotent
        dc.stop()
        dc.stop()

    def test_sweeper_drops_stale_series(self) -> None:
        """Stale series are removed without any further count_metric call."""
        dc = DeltaCalculator(expiration_age=1.0, expiration_check_interval=0.01)
        dc.count_metric("m", {}, 1.0, 0.0)

        with dc:
            for _ in range(200):
                if len(dc) == 0:
                    break
                threading.Event().wait(0.01)

        assert len(dc) == 0


class TestConcurrency:
    """Tests for shared use from several threads."""

    def test_threads_sharing_calculator_see_their_own_deltas(self) -> None:
        """Per-thread series stay consistent while sharing one table."""
        dc = DeltaCalculator(expiration_age=1e9, expiration_check_interval=0.001)
        totals: dict[int, float] = {}

        def worker(n: int) -> None:
            total = 0.0
            for i in range(1001):
                dp = dc.count_metric("m", {"thread": n}, float(i), 1000.0 + i)
                if dp is not None:
                    total += dp.value
            totals[n] = total

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert totals == {n: 1000.0 for n in range(8)}
        assert len(dc) == 8


def test_series_key_ignores_attribute_order() -> None:
    """series_key() is insensitive to attribute order."""
    assert series_key("m", {"a": 1, "b": 2}) == series_key("m", {"b": 2, "a": 1})
