"""Fixed-window RMS envelope reduction.

Purpose
-------
The EMG envelope approximates muscle-activation intensity. Here it is produced
as one RMS value per *non-overlapping* block of raw samples, which keeps the
live path cheap: each envelope value costs one pass over its own window and
nothing is recomputed.

Mathematical Definition
-----------------------
For a window :math:`x[0..N-1]`:

.. math:: e = \\sqrt{\\frac{1}{N} \\sum_{k=0}^{N-1} x[k]^2 }

Window Size Considerations
--------------------------
The default 100 ms window (100 samples at 1000 Hz) yields a 10 Hz envelope,
fast enough to resolve individual reps while smoothing motor-unit noise.
"""
from __future__ import annotations
from typing import Iterable, Optional

import numpy as np


def window_rms(x) -> float:
    """Root mean square of a window; 0.0 for an empty window."""
    x = np.asarray(x, dtype=float)
    if x.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(x * x)))


class WindowReducer:
    """Accumulate samples and emit one RMS value per full window.

    Windows do not overlap: the buffer is cleared after each emission. A
    partial window is held until it fills and is dropped on `reset`.
    """

    def __init__(self, window_samples: int):
        if window_samples <= 0:
            raise ValueError("window_samples must be positive")
        self.window_samples = int(window_samples)
        self._chunk: list[float] = []

    @property
    def pending(self) -> int:
        """Samples waiting for the current window to fill."""
        return len(self._chunk)

    def reset(self) -> None:
        self._chunk.clear()

    def push(self, sample: float) -> Optional[float]:
        """Add one sample; return the window RMS when the window completes."""
        self._chunk.append(float(sample))
        if len(self._chunk) < self.window_samples:
            return None
        value = window_rms(self._chunk)
        self._chunk.clear()
        return value

    def transform(self, samples: Iterable[float]) -> list[float]:
        """Feed a batch of samples; return the RMS of every window it completes."""
        out = []
        for s in samples:
            value = self.push(s)
            if value is not None:
                out.append(value)
        return out
