"""Normalization of envelope values against the MVC reference.

The denominator is the larger of the calibrated MVC and the running session
peak. Before any calibration the running peak alone is used, so the ratio is
self-referential until an MVC capture exceeds it.
"""
from __future__ import annotations
import numpy as np

EPSILON = 1e-9


def reference_denominator(mvc_reference: float, peak_v: float) -> float:
    return max(float(mvc_reference), float(peak_v))


def normalize(rms: float, mvc_reference: float, peak_v: float, eps: float = EPSILON) -> float:
    """Map an envelope value to a fraction of the reference.

    Returns 0.0 while the denominator is not above `eps`. The result is not
    clipped and may exceed 1.0.
    """
    denom = reference_denominator(mvc_reference, peak_v)
    if denom > eps:
        return float(rms) / denom
    return 0.0


def normalize_history(values, mvc_reference: float, peak_v: float, eps: float = EPSILON) -> np.ndarray:
    """Vectorized `normalize` over an envelope history."""
    x = np.asarray(values, dtype=float)
    denom = reference_denominator(mvc_reference, peak_v)
    if denom > eps:
        return x / denom
    return np.zeros_like(x)


def clip_for_display(ratio, upper: float = 1.5):
    """Clip ratios into [0, upper] for plotting; works on scalars and arrays."""
    clipped = np.clip(ratio, 0.0, upper)
    return float(clipped) if np.ndim(clipped) == 0 else clipped
