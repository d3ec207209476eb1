"""NDJSON encoder for metric batches."""

import json
import math
from collections.abc import Iterable
from typing import Any

from promemit.core.errors import SerializationError
from promemit.core.models import Histogram, Metric, Summary


def _encode_bound(bound: float) -> float | str:
    """Encode a bucket bound, spelling infinities the exposition-format way."""
    if math.isinf(bound):
        return "+Inf" if bound > 0 else "-Inf"
    return bound


def _encode_value(value: object) -> Any:
    if isinstance(value, Summary):
        return {
            "sample_count": value.sample_count,
            "sample_sum": value.sample_sum,
            "quantiles": [
                {"quantile": q.quantile, "value": q.value} for q in value.quantiles
            ],
        }
    if isinstance(value, Histogram):
        return {
            "sample_count": value.sample_count,
            "sample_sum": value.sample_sum,
            "buckets": [
                {
                    "upper_bound": _encode_bound(b.upper_bound),
                    "cumulative_count": b.cumulative_count,
                }
                for b in value.buckets
            ],
        }
    return value


def encode_metrics(metrics: Iterable[Metric]) -> str:
    """Encode metrics to newline-delimited JSON.

    Args:
        metrics: An iterable of Metric objects.

    Returns:
        NDJSON string with one JSON object per metric.
        Empty string if no metrics.

    Raises:
        SerializationError: A metric holds a value JSON cannot represent,
            such as NaN or a non-scalar attribute.
    """
    lines = []
    for metric in metrics:
        obj = {
            "name": metric.name,
            "type": metric.metric_type.value,
            "attributes": metric.attributes,
            "value": _encode_value(metric.value),
        }
        try:
            lines.append(json.dumps(obj, allow_nan=False))
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"could not serialize metric {metric.name!r}: {exc}"
            ) from exc

    if not lines:
        return ""

    return "\n".join(lines) + "\n"
