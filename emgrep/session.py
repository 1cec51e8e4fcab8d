"""Set recording.

A set brackets a run of reps: `start` zeroes the gate's rep and TUT counters
and opens the session, `stop` freezes the counters and the session statistics
into a `SetSummary`. A set that is never stopped produces nothing.
"""
from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .errors import SessionStateError
from .realtime.gate import RepGate
from .schemas import SetSummary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SetSession:
    """Snapshot of the current set."""
    start_time: Optional[float]
    reps: int
    tut_seconds: float
    recording: bool


class SetRecorder:
    """Open and finalize sets over a rep gate's counters."""

    def __init__(self, gate: RepGate, clock: Callable[[], float] = time.monotonic,
                 wall_clock: Callable[[], datetime] = datetime.now):
        self.gate = gate
        self.clock = clock
        self.wall_clock = wall_clock
        self.start_time: Optional[float] = None

    @property
    def recording(self) -> bool:
        return self.start_time is not None

    def snapshot(self) -> SetSession:
        return SetSession(start_time=self.start_time, reps=self.gate.reps,
                          tut_seconds=self.gate.tut_seconds, recording=self.recording)

    def start(self) -> SetSession:
        if self.recording:
            raise SessionStateError("a set is already being recorded")
        self.gate.reset_counters()
        self.start_time = self.clock()
        logger.info("set started")
        return self.snapshot()

    def stop(self, avg_v: float, peak_v: float, mvc_v: float,
             preset_id: Optional[str] = None) -> SetSummary:
        """Finalize the set; raises SessionStateError if none is open."""
        if not self.recording:
            raise SessionStateError("no set is being recorded")
        duration = max(0.0, self.clock() - self.start_time)
        summary = SetSummary(
            timestamp=self.wall_clock(),
            reps=self.gate.reps,
            tut_sec=self.gate.tut_seconds,
            duration_sec=duration,
            avg_v=avg_v,
            peak_v=peak_v,
            mvc_v=mvc_v,
            preset_id=preset_id,
        )
        self.start_time = None
        self.gate.reset_counters()
        logger.info("set stopped: %d reps, TUT %.1fs over %.1fs", summary.reps, summary.tut_sec, duration)
        return summary
