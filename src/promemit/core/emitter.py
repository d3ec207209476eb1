"""Translation of scraped metrics into telemetry datapoints.

Gauges pass straight through, counters and the counter-like parts of
histograms are turned into deltas, and summary quantiles and histogram
buckets become percentile gauges.
"""

import logging
import math
import time
from collections.abc import Callable, Iterable, Sequence

from promemit.core.config import DEFAULT_PERCENTILES, EmitterConfig
from promemit.core.delta import DeltaCalculator
from promemit.core.errors import (
    EmitError,
    InvalidPercentile,
    PercentileComputationFailed,
    UnknownMetricType,
    UnknownPayloadType,
)
from promemit.core.models import (
    Attributes,
    Bucket,
    Datapoint,
    Histogram,
    Metric,
    MetricType,
    Summary,
)
from promemit.core.percentile import percentile as estimate_percentile
from promemit.core.ports import DeltaConverterPort, SinkPort

logger = logging.getLogger(__name__)

PercentileEstimator = Callable[[float, Sequence[Bucket]], float]

PERCENTILE_ATTRIBUTE = "percentile"
UPPER_BOUND_ATTRIBUTE = "histogram.bucket.upperBound"


def copy_attributes(attributes: Attributes) -> Attributes:
    """Return a shallow copy of attributes."""
    return dict(attributes)


class TelemetryEmitter:
    """Emitter that translates metrics and records them into a sink.

    Example:
        ```python
        sink = InMemorySink()
        emitter = TelemetryEmitter(sink, DeltaCalculator())
        emitter.emit(metrics)
        ```
    """

    name = "telemetry"

    def __init__(
        self,
        sink: SinkPort,
        delta_converter: DeltaConverterPort,
        percentiles: Iterable[float] = DEFAULT_PERCENTILES,
        estimator: PercentileEstimator = estimate_percentile,
    ) -> None:
        """Initialize the emitter.

        Args:
            sink: Receives every finalized datapoint.
            delta_converter: Converts cumulative values into deltas. May be
                shared between emitters.
            percentiles: Percentiles (0-100 scale) computed for histograms.
            estimator: Computes a percentile from cumulative buckets.
        """
        self._sink = sink
        self._delta = delta_converter
        self._percentiles = tuple(percentiles)
        self._estimator = estimator
        logger.debug(
            "telemetry emitter configured with histogram percentiles: %s",
            self._percentiles,
        )

    @classmethod
    def from_config(cls, config: EmitterConfig, sink: SinkPort) -> "TelemetryEmitter":
        """Build an emitter with its own DeltaCalculator from config."""
        delta = DeltaCalculator(
            expiration_age=config.delta_expiration_age,
            expiration_check_interval=config.delta_expiration_check_interval,
        )
        logger.debug(
            "telemetry emitter configured with delta expiration age %ss, "
            "check interval %ss",
            config.delta_expiration_age,
            config.delta_expiration_check_interval,
        )
        return cls(sink, delta, percentiles=config.percentiles)

    @property
    def percentiles(self) -> tuple[float, ...]:
        return self._percentiles

    def emit(self, metrics: Sequence[Metric]) -> None:
        """Translate a batch of metrics and record the results.

        Every metric is attempted. Failures do not stop the batch; they are
        collected and raised together once the batch is done.

        Raises:
            EmitError: Grouping every failure encountered in the batch.
        """
        # Record at a uniform time so processing is not reflected in
        # measurements that already took place.
        now = time.time()
        errors: list[Exception] = []
        for metric in metrics:
            try:
                errors.extend(self._emit_metric(metric, now))
            except Exception as exc:
                # Sink and delta converter failures are reported like
                # translation failures.
                logger.debug("Failed to emit metric %s: %s", metric.name, exc)
                errors.append(exc)

        if errors:
            logger.warning(
                "Emitted batch of %d metrics with %d failures",
                len(metrics),
                len(errors),
            )
            raise EmitError(f"failed to emit {len(errors)} item(s)", errors)

    def _emit_metric(self, metric: Metric, now: float) -> list[Exception]:
        metric_type = metric.metric_type
        if metric_type in (MetricType.GAUGE, MetricType.COUNTER):
            if isinstance(metric.value, bool) or not isinstance(
                metric.value, (int, float)
            ):
                return [UnknownPayloadType(metric.name, metric_type.value)]
            value = float(metric.value)
            if metric_type is MetricType.GAUGE:
                self._sink.record(
                    Datapoint(
                        name=metric.name,
                        attributes=copy_attributes(metric.attributes),
                        value=value,
                        timestamp=now,
                    )
                )
            else:
                self._record_delta(metric.name, metric.attributes, value, now)
            return []
        if metric_type is MetricType.SUMMARY:
            return self._emit_summary(metric, now)
        if metric_type is MetricType.HISTOGRAM:
            return self._emit_histogram(metric, now)
        return [UnknownMetricType(metric.name, metric_type.value)]

    def _record_delta(
        self, name: str, attributes: Attributes, value: float, now: float
    ) -> None:
        datapoint = self._delta.count_metric(
            name, copy_attributes(attributes), value, now
        )
        if datapoint is not None:
            self._sink.record(datapoint)

    def _record_percentile(
        self, metric: Metric, p: float, value: float, now: float
    ) -> None:
        attributes = copy_attributes(metric.attributes)
        attributes[PERCENTILE_ATTRIBUTE] = p
        self._sink.record(
            Datapoint(
                name=metric.name + ".percentiles",
                attributes=attributes,
                value=value,
                timestamp=now,
            )
        )

    def _emit_summary(self, metric: Metric, now: float) -> list[Exception]:
        """Record every summary quantile as a percentile gauge.

        Quantiles are already a point-in-time snapshot, so no delta
        conversion applies.
        """
        summary = metric.value
        if not isinstance(summary, Summary):
            return [UnknownPayloadType(metric.name, MetricType.SUMMARY.value)]

        errors: list[Exception] = []
        for q in summary.quantiles:
            p = q.quantile * 100.0
            if not 0.0 <= p <= 100.0:
                errors.append(InvalidPercentile(metric.name, p))
                continue
            self._record_percentile(metric, p, q.value, now)
        return errors

    def _emit_histogram(self, metric: Metric, now: float) -> list[Exception]:
        """Record histogram sum and bucket deltas plus curated percentiles.

        Percentiles describe the current distribution, so they are computed
        from the raw cumulative counts rather than from the deltas.
        """
        hist = metric.value
        if not isinstance(hist, Histogram):
            return [UnknownPayloadType(metric.name, MetricType.HISTOGRAM.value)]

        self._record_delta(metric.name + ".sum", metric.attributes, hist.sample_sum, now)

        bucket_name = metric.name + ".buckets"
        for bucket in hist.buckets:
            # The +Inf bucket only repeats the total count.
            if math.isinf(bucket.upper_bound) and bucket.upper_bound > 0:
                continue
            attributes = copy_attributes(metric.attributes)
            attributes[UPPER_BOUND_ATTRIBUTE] = bucket.upper_bound
            self._record_delta(bucket_name, attributes, bucket.cumulative_count, now)

        errors: list[Exception] = []
        for p in self._percentiles:
            try:
                value = self._estimator(p, hist.buckets)
            except Exception as exc:
                errors.append(PercentileComputationFailed(metric.name, p, exc))
                continue
            self._record_percentile(metric, p, value, now)
        return errors
