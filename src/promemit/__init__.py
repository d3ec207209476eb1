"""Translate scraped exposition-format metrics into telemetry datapoints."""

from promemit.adapters.emitters import StdoutEmitter
from promemit.adapters.sinks import InMemorySink, RingBufferSink, SQLiteSink
from promemit.core.config import EmitterConfig
from promemit.core.delta import DeltaCalculator
from promemit.core.emitter import TelemetryEmitter
from promemit.core.errors import (
    EmitError,
    InvalidPercentile,
    PercentileComputationFailed,
    PromEmitError,
    SerializationError,
    UnknownMetricType,
    UnknownPayloadType,
)
from promemit.core.models import (
    Bucket,
    Datapoint,
    DatapointKind,
    Histogram,
    Metric,
    MetricType,
    Quantile,
    Summary,
)
from promemit.core.percentile import percentile
from promemit.core.ports import DeltaConverterPort, EmitterPort, SinkPort

__all__ = [
    "Bucket",
    "Datapoint",
    "DatapointKind",
    "DeltaCalculator",
    "DeltaConverterPort",
    "EmitError",
    "EmitterConfig",
    "EmitterPort",
    "Histogram",
    "InMemorySink",
    "InvalidPercentile",
    "Metric",
    "MetricType",
    "PercentileComputationFailed",
    "PromEmitError",
    "Quantile",
    "RingBufferSink",
    "SQLiteSink",
    "SerializationError",
    "SinkPort",
    "StdoutEmitter",
    "Summary",
    "TelemetryEmitter",
    "UnknownMetricType",
    "UnknownPayloadType",
    "percentile",
]
