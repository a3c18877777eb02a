"""
Statistics primitives shared by the anomaly detector and scoring code.
"""

from typing import Sequence

import numpy as np


def mean(samples: Sequence[float]) -> float:
    """Arithmetic mean; 0 for an empty sequence."""
    if len(samples) == 0:
        return 0.0
    return float(np.mean(samples))


def stddev(samples: Sequence[float]) -> float:
    """
    Population standard deviation (divides by N).

    Returns 0 for fewer than 2 samples.
    """
    if len(samples) < 2:
        return 0.0
    arr = np.asarray(samples, dtype=float)
    # Constant series must give exactly 0, not float noise from the mean
    if np.ptp(arr) == 0:
        return 0.0
    return float(np.std(arr, ddof=0))


def z_score(value: float, samples: Sequence[float]) -> float:
    """
    Absolute z-score of value against samples.

    Returns 0 when the distribution is degenerate (no spread).
    """
    sigma = stddev(samples)
    if sigma == 0:
        return 0.0
    return abs(value - mean(samples)) / sigma
