"""Exceptions raised while translating metrics."""


class PromEmitError(Exception):
    """Base class for all promemit errors."""


class UnknownMetricType(PromEmitError):
    """The metric declares a type the emitter cannot translate."""

    def __init__(self, name: str, declared_type: str) -> None:
        super().__init__(f"unknown metric type {declared_type!r} for {name!r}")
        self.name = name
        self.declared_type = declared_type


class UnknownPayloadType(PromEmitError, TypeError):
    """The metric value does not have the shape its declared type requires."""

    def __init__(self, name: str, expected_kind: str) -> None:
        super().__init__(f"unknown {expected_kind} metric payload for {name!r}")
        self.name = name
        self.expected_kind = expected_kind


class InvalidPercentile(PromEmitError, ValueError):
    """A quantile translated to a percentile outside [0, 100]."""

    def __init__(self, name: str, percentile: float) -> None:
        super().__init__(
            f"invalid percentile {percentile:g} for {name!r}: "
            "must be in range [0.0, 100.0]"
        )
        self.name = name
        self.percentile = percentile


class PercentileComputationFailed(PromEmitError):
    """The percentile estimator could not compute a histogram percentile.

    The estimator's own error is chained as ``__cause__``.
    """

    def __init__(self, name: str, percentile: float, cause: Exception) -> None:
        super().__init__(
            f"could not compute percentile {percentile:g} for {name!r}: {cause}"
        )
        self.name = name
        self.percentile = percentile
        self.__cause__ = cause


class SerializationError(PromEmitError):
    """A metric batch could not be serialized."""


class EmitError(ExceptionGroup):
    """Every failure collected during one emit call.

    Raised once, after the whole batch has been processed, so callers can
    match individual failures with ``except*``.
    """
