"""
Statistics for latency sample sets.

Calculates:
- Average: arithmetic mean of all samples
- Jitter: mean absolute difference between consecutive samples
- Throughput: megabits per second from a byte count and a duration
"""

from typing import Sequence

import numpy as np

from .models import LatencyStats


def average(samples: Sequence[float]) -> float:
    """Arithmetic mean, 0.0 for an empty set."""
    if len(samples) == 0:
        return 0.0
    return float(np.mean(np.asarray(samples, dtype=float)))


def jitter(samples: Sequence[float]) -> float:
    """
    Mean absolute difference between temporally adjacent samples.

    N samples give N-1 differences; fewer than two samples give 0.0.
    """
    if len(samples) <= 1:
        return 0.0
    diffs = np.abs(np.diff(np.asarray(samples, dtype=float)))
    return float(np.mean(diffs))


def summarize_latency(samples: Sequence[float], failures: int = 0) -> LatencyStats:
    """
    Derive average and jitter from an ordered sample set.

    Args:
        samples: Elapsed milliseconds per request, in the order issued
        failures: How many of those requests failed

    Returns:
        LatencyStats, computed once
    """
    return LatencyStats(
        samples=tuple(float(s) for s in samples),
        failures=failures,
        average_ms=average(samples),
        jitter_ms=jitter(samples),
    )


def megabits_per_second(byte_count: int, elapsed_s: float) -> float:
    """Throughput in Mbps; 0.0 when nothing moved or no time elapsed."""
    if byte_count <= 0 or elapsed_s <= 0:
        return 0.0
    return byte_count * 8 / elapsed_s / 1_000_000


def round2(value: float) -> float:
    """Round to two decimal places for reporting."""
    return round(float(value), 2)
