"""MVC (maximum voluntary contraction) calibration.

A calibration is a short, time-boxed capture. It runs its own window reducer
and peak tracker so it can observe the same stream as the live pipeline
without touching the live pipeline's partial window or statistics. Only the
final scalar is merged into the shared reference, and merging can only raise
it.
"""
from __future__ import annotations
import asyncio
import logging
from typing import AsyncIterable, Iterable, Optional

from .preprocessing.envelope import WindowReducer

logger = logging.getLogger(__name__)

DEFAULT_DURATION_S = 3.0


def merge_mvc(current: float, observed: float) -> float:
    """Combine a stored reference with a new observation (never lowers it)."""
    return max(float(current), float(observed))


class MvcCalibrator:
    """Capture the peak RMS window over a fixed duration."""

    def __init__(self, window_samples: int, duration_s: float = DEFAULT_DURATION_S):
        self.window_samples = int(window_samples)
        self.duration_s = float(duration_s)
        self._reducer = WindowReducer(self.window_samples)
        self.peak = 0.0
        self.windows_seen = 0

    def begin(self) -> None:
        """Start a fresh capture: new reducer, zero peak."""
        self._reducer = WindowReducer(self.window_samples)
        self.peak = 0.0
        self.windows_seen = 0

    def observe(self, samples: Iterable[float]) -> float:
        """Feed one batch; return the peak so far."""
        for rms in self._reducer.transform(samples):
            self.windows_seen += 1
            if rms > self.peak:
                self.peak = rms
        return self.peak

    async def calibrate(self, source: AsyncIterable[Iterable[float]],
                        duration_s: Optional[float] = None) -> float:
        """Observe `source` until the deadline and return the peak RMS.

        The capture ends at the deadline or when the source is exhausted,
        whichever comes first. The peak seen so far is returned in both cases,
        0.0 if no full window arrived. Cancellation of the caller propagates.
        """
        duration = self.duration_s if duration_s is None else float(duration_s)
        self.begin()

        async def _consume():
            async for batch in source:
                self.observe(batch)

        try:
            await asyncio.wait_for(_consume(), timeout=duration)
        except asyncio.TimeoutError:
            pass  # deadline reached: keep what was observed
        logger.info("MVC capture: peak=%.6f V over %d windows (%.1fs)",
                    self.peak, self.windows_seen, duration)
        return self.peak
