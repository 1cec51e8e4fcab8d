"""Bounded rolling envelope history with running peak and average."""
from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class RunningStats:
    """Snapshot of the envelope statistics after a push.

    peak_v never decreases within a session; avg_v is the mean of the values
    currently held in the history.
    """
    peak_v: float
    avg_v: float


class EnvelopeBuffer:
    """FIFO history of envelope values.

    The peak is session-scoped: evicting the value that set it does not lower
    it. Only `reset` starts a new session.
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._values: deque[float] = deque(maxlen=int(capacity))
        self.peak_v = 0.0
        self.avg_v = 0.0

    @property
    def capacity(self) -> int:
        return self._values.maxlen

    def __len__(self) -> int:
        return len(self._values)

    @property
    def latest(self) -> Optional[float]:
        return self._values[-1] if self._values else None

    def values(self) -> np.ndarray:
        """Current history, oldest first."""
        return np.asarray(self._values, dtype=float)

    def push(self, value: float) -> RunningStats:
        value = float(value)
        self._values.append(value)  # deque maxlen evicts the oldest
        self.avg_v = float(np.mean(self._values))
        self.peak_v = max(self.peak_v, value)
        return self.stats()

    def stats(self) -> RunningStats:
        return RunningStats(peak_v=self.peak_v, avg_v=self.avg_v)

    def reset(self) -> None:
        self._values.clear()
        self.peak_v = 0.0
        self.avg_v = 0.0
