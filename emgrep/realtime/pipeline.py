"""Per-window streaming pipeline for real-time EMG rep tracking."""
from __future__ import annotations
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from ..config import TrackerConfig
from ..normalization import EPSILON, normalize
from ..preprocessing.envelope import WindowReducer
from .buffer import EnvelopeBuffer
from .gate import GateEvent, RepGate


@dataclass(frozen=True)
class TickResult:
    """Outcome of one envelope window passing through the pipeline."""
    time: float
    rms: float
    ratio: float
    avg_v: float
    peak_v: float
    event: Optional[GateEvent] = None


class SignalPipeline:
    """Raw samples -> RMS window -> envelope history -> ratio -> rep gate.

    Every emitted window is handled as one step: the history push (and its
    peak/average update) happens before normalization, so the ratio of a new
    peak window is computed against that peak. Thresholds and the MVC
    reference are passed in per batch and never modified here.
    """

    def __init__(self, window_samples: int, history_capacity: int,
                 eps: float = EPSILON, clock: Callable[[], float] = time.monotonic):
        self.reducer = WindowReducer(window_samples)
        self.envelope = EnvelopeBuffer(history_capacity)
        self.gate = RepGate()
        self.eps = eps
        self.clock = clock

    @classmethod
    def from_config(cls, cfg: TrackerConfig, clock: Callable[[], float] = time.monotonic) -> "SignalPipeline":
        return cls(cfg.window_samples, cfg.history_capacity, eps=cfg.epsilon, clock=clock)

    def reset(self) -> None:
        """Start a new process session: drop partial window, history, peak and gate state."""
        self.reducer.reset()
        self.envelope.reset()
        self.gate.reset()

    def step(self, rms: float, hi: float, lo: float, mvc_reference: float,
             recording: bool) -> TickResult:
        """Run one already-reduced envelope value through buffer, normalizer and gate."""
        now = self.clock()
        stats = self.envelope.push(rms)
        ratio = normalize(rms, mvc_reference, stats.peak_v, self.eps)
        event = self.gate.update(ratio, now, hi, lo, recording)
        return TickResult(time=now, rms=rms, ratio=ratio, avg_v=stats.avg_v,
                          peak_v=stats.peak_v, event=event)

    def process(self, samples: Iterable[float], hi: float, lo: float,
                mvc_reference: float, recording: bool) -> list[TickResult]:
        """Process a batch of raw samples in arrival order."""
        results = []
        for s in samples:
            rms = self.reducer.push(s)
            if rms is not None:
                results.append(self.step(rms, hi, lo, mvc_reference, recording))
        return results
