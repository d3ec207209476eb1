"""Core domain models for scraped metrics and emitted datapoints."""

import math
from dataclasses import dataclass, field
from enum import Enum

from promemit.core.errors import UnknownMetricType, UnknownPayloadType

AttributeValue = str | int | float | bool
Attributes = dict[str, AttributeValue]


class MetricType(str, Enum):
    """Declared type of a scraped metric family."""

    GAUGE = "gauge"
    COUNTER = "counter"
    SUMMARY = "summary"
    HISTOGRAM = "histogram"
    UNTYPED = "untyped"


class DatapointKind(str, Enum):
    """How the backend should interpret a datapoint value."""

    GAUGE = "gauge"
    COUNT = "count"


@dataclass(frozen=True)
class Quantile:
    """A precomputed summary quantile.

    Attributes:
        quantile: Quantile fraction, expected in [0, 1].
        value: Observed value at that quantile.
    """

    quantile: float
    value: float


@dataclass(frozen=True)
class Summary:
    """Point-in-time summary snapshot."""

    quantiles: tuple[Quantile, ...] = ()
    sample_count: float | None = None
    sample_sum: float | None = None


@dataclass(frozen=True)
class Bucket:
    """A cumulative histogram bucket.

    Attributes:
        upper_bound: Inclusive upper bound, may be +inf.
        cumulative_count: Observations less than or equal to upper_bound.
    """

    upper_bound: float
    cumulative_count: float


@dataclass(frozen=True)
class Histogram:
    """Cumulative histogram snapshot.

    Buckets must be ordered by ascending upper bound and their cumulative
    counts must never decrease.
    """

    sample_sum: float
    buckets: tuple[Bucket, ...] = ()
    sample_count: float | None = None

    def __post_init__(self) -> None:
        for prev, curr in zip(self.buckets, self.buckets[1:]):
            if curr.upper_bound <= prev.upper_bound:
                raise ValueError(
                    f"histogram buckets must ascend by upper bound: "
                    f"{curr.upper_bound} follows {prev.upper_bound}"
                )
            if curr.cumulative_count < prev.cumulative_count:
                raise ValueError(
                    f"histogram cumulative counts must not decrease: "
                    f"bucket {curr.upper_bound} has {curr.cumulative_count} "
                    f"after {prev.cumulative_count}"
                )

    @property
    def has_inf_bucket(self) -> bool:
        return bool(self.buckets) and math.isinf(self.buckets[-1].upper_bound)


MetricValue = float | Summary | Histogram

# Payload shape each declared type must carry.
_PAYLOAD_TYPES: dict[MetricType, tuple[type, ...]] = {
    MetricType.GAUGE: (int, float),
    MetricType.COUNTER: (int, float),
    MetricType.UNTYPED: (int, float),
    MetricType.SUMMARY: (Summary,),
    MetricType.HISTOGRAM: (Histogram,),
}


def payload_matches(metric_type: MetricType, value: object) -> bool:
    """Return True if value has the payload shape metric_type declares."""
    expected = _PAYLOAD_TYPES.get(metric_type)
    if expected is None or isinstance(value, bool):
        return False
    return isinstance(value, expected)


@dataclass(frozen=True)
class Metric:
    """A single scraped metric, read-only to the translation core.

    Attributes:
        name: Metric name (e.g., http_requests_total).
        metric_type: Declared metric type.
        value: Payload matching metric_type: a number for gauges, counters
            and untyped metrics, a Summary or a Histogram otherwise.
        attributes: Key-value pairs identifying the series.
    """

    name: str
    metric_type: MetricType
    value: MetricValue
    attributes: Attributes = field(default_factory=dict)

    def __post_init__(self) -> None:
        try:
            metric_type = MetricType(self.metric_type)
        except ValueError:
            raise UnknownMetricType(self.name, str(self.metric_type)) from None
        object.__setattr__(self, "metric_type", metric_type)
        if not payload_matches(self.metric_type, self.value):
            raise UnknownPayloadType(self.name, self.metric_type.value)


@dataclass(frozen=True)
class Datapoint:
    """A finalized telemetry datapoint handed to a sink.

    Attributes:
        name: Metric name, possibly suffixed (e.g., latency.percentiles).
        attributes: Independent copy of the series attributes.
        value: Gauge value or delta.
        timestamp: Unix timestamp in seconds.
        kind: Gauge or count.
        interval: Seconds covered by a count datapoint, None for gauges.
    """

    name: str
    attributes: Attributes
    value: float
    timestamp: float
    kind: DatapointKind = DatapointKind.GAUGE
    interval: float | None = None
