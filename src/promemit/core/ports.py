"""Port interfaces for emitters, sinks and delta conversion.

These protocols define the contracts that adapters must implement.
The translation core depends only on these interfaces, not concrete
implementations.
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from promemit.core.models import Attributes, Datapoint, Metric


@runtime_checkable
class EmitterPort(Protocol):
    """Port for anything that can emit a batch of scraped metrics.

    Examples: TelemetryEmitter, StdoutEmitter.
    """

    @property
    def name(self) -> str:
        """Identity used for logging and self-reporting."""
        ...

    def emit(self, metrics: Sequence[Metric]) -> None:
        """Emit a batch of metrics.

        Raises:
            EmitError: One or more metrics could not be emitted. All other
                metrics in the batch have still been processed.
        """
        ...


@runtime_checkable
class SinkPort(Protocol):
    """Port for receiving finalized datapoints.

    Batching, retries and delivery are the sink's responsibility.
    Examples: InMemorySink, RingBufferSink, SQLiteSink.
    """

    def record(self, datapoint: Datapoint) -> None:
        """Record a single datapoint."""
        ...


@runtime_checkable
class DeltaConverterPort(Protocol):
    """Port for converting cumulative values into interval deltas."""

    def count_metric(
        self,
        name: str,
        attributes: Attributes,
        value: float,
        now: float,
    ) -> Datapoint | None:
        """Convert a cumulative value into a delta datapoint.

        Args:
            name: Series name.
            attributes: Series attributes. Together with name they identify
                the series.
            value: Raw cumulative value.
            now: Unix timestamp in seconds of the observation.

        Returns:
            A count datapoint, or None when no delta can be produced yet
            (first observation, counter reset, or expired series).
        """
        ...
