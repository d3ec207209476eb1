"""Percentile estimation from cumulative histogram buckets."""

import math
from collections.abc import Sequence

from promemit.core.models import Bucket


def percentile(p: float, buckets: Sequence[Bucket]) -> float:
    """Estimate the value at percentile p from cumulative buckets.

    Observations are assumed to be spread linearly within each bucket. The
    lower bound of the first bucket is taken as 0 unless its upper bound is
    not positive, in which case that upper bound is returned. A rank that
    falls into the +Inf bucket yields the highest finite upper bound.

    Args:
        p: Percentile on a 0-100 scale.
        buckets: Cumulative buckets, including a +Inf bucket. Order does not
            matter; they are sorted by upper bound.

    Returns:
        The estimated value.

    Raises:
        ValueError: p is out of range, the buckets lack a +Inf bucket, there
            are fewer than two buckets, or no observations were recorded.
    """
    if not 0.0 <= p <= 100.0:
        raise ValueError(f"invalid percentile {p:g}: must be in range [0.0, 100.0]")
    if len(buckets) < 2:
        raise ValueError("histogram must have at least two buckets")

    ordered = sorted(buckets, key=lambda b: b.upper_bound)
    if not math.isinf(ordered[-1].upper_bound):
        raise ValueError("histogram must have a +Inf bucket")

    # Clamp counts to the running maximum; scraped counts can be slightly
    # non-monotonic due to floating point precision.
    counts: list[float] = []
    running = 0.0
    for b in ordered:
        running = max(running, b.cumulative_count)
        counts.append(running)

    total = counts[-1]
    if total <= 0:
        raise ValueError("histogram has no observations")

    rank = p / 100.0 * total
    # Skip leading empty buckets so the 0th percentile lands on real data.
    idx = next(i for i, c in enumerate(counts) if c >= rank and c > 0)

    if idx == len(ordered) - 1:
        return ordered[-2].upper_bound
    if idx == 0 and ordered[0].upper_bound <= 0:
        return ordered[0].upper_bound

    bucket_start = 0.0
    bucket_end = ordered[idx].upper_bound
    count = counts[idx]
    if idx > 0:
        bucket_start = ordered[idx - 1].upper_bound
        count -= counts[idx - 1]
        rank -= counts[idx - 1]
    return bucket_start + (bucket_end - bucket_start) * (rank / count)
