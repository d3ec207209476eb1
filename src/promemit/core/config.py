"""Construction-time configuration for the telemetry emitter."""

from dataclasses import dataclass

DEFAULT_PERCENTILES = (50.0, 95.0, 99.0)
DEFAULT_DELTA_EXPIRATION_AGE = 5 * 60.0
DEFAULT_DELTA_EXPIRATION_CHECK_INTERVAL = 5 * 60.0


@dataclass(frozen=True)
class EmitterConfig:
    """Immutable emitter configuration.

    Attributes:
        percentiles: Percentiles (0-100 scale) computed for every histogram.
        delta_expiration_age: Seconds a cumulative series may go unobserved
            before its delta state is dropped.
        delta_expiration_check_interval: Minimum seconds between sweeps for
            expired delta state.
    """

    percentiles: tuple[float, ...] = DEFAULT_PERCENTILES
    delta_expiration_age: float = DEFAULT_DELTA_EXPIRATION_AGE
    delta_expiration_check_interval: float = DEFAULT_DELTA_EXPIRATION_CHECK_INTERVAL

    def __post_init__(self) -> None:
        # Accept any iterable but store a tuple so the value stays hashable.
        object.__setattr__(self, "percentiles", tuple(self.percentiles))
        for p in self.percentiles:
            if not 0.0 <= p <= 100.0:
                raise ValueError(
                    f"invalid percentile {p:g}: must be in range [0.0, 100.0]"
                )
        if self.delta_expiration_age <= 0:
            raise ValueError("delta_expiration_age must be positive")
        if self.delta_expiration_check_interval <= 0:
            raise ValueError("delta_expiration_check_interval must be positive")
