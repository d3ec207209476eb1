"""Builders shared by unit, property and BDD tests."""

from promemit.core.models import (
    Attributes,
    Bucket,
    Datapoint,
    Histogram,
    Metric,
    MetricType,
    Quantile,
    Summary,
)

FROZEN_NOW = 1702300000.0


def gauge_metric(name: str, value: float, attributes: Attributes | None = None) -> Metric:
    """Build a gauge Metric."""
    return Metric(name, MetricType.GAUGE, value, attributes or {})


def counter_metric(
    name: str, value: float, attributes: Attributes | None = None
) -> Metric:
    """Build a counter Metric."""
    return Metric(name, MetricType.COUNTER, value, attributes or {})


def histogram_metric(
    name: str,
    buckets: list[tuple[float, float]],
    sample_sum: float,
    attributes: Attributes | None = None,
) -> Metric:
    """Build a histogram Metric from (upper_bound, cumulative_count) pairs."""
    return Metric(
        name=name,
        metric_type=MetricType.HISTOGRAM,
        value=Histogram(
            sample_sum=sample_sum,
            buckets=tuple(Bucket(ub, count) for ub, count in buckets),
        ),
        attributes=attributes or {},
    )


def summary_metric(
    name: str,
    quantiles: list[tuple[float, float]],
    attributes: Attributes | None = None,
) -> Metric:
    """Build a summary Metric from (quantile, value) pairs."""
    return Metric(
        name=name,
        metric_type=MetricType.SUMMARY,
        value=Summary(quantiles=tuple(Quantile(q, v) for q, v in quantiles)),
        attributes=attributes or {},
    )


def by_name(datapoints: list[Datapoint], name: str) -> list[Datapoint]:
    """Return the datapoints with the given name."""
    return [d for d in datapoints if d.name == name]
