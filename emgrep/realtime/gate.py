"""Hysteresis (Schmitt-trigger) rep gate.

The gate engages when the normalized envelope rises strictly above `hi` and
releases when it falls strictly below `lo`. Each release counts one rep. The
time spent engaged is added to time-under-tension only while a set is being
recorded, so the live rep counter keeps tracking motion between sets.

Precondition: ``lo < hi``. The gate does not check this; an inverted pair
makes it either stick engaged or toggle on every window. Validate pairs with
:meth:`emgrep.presets.ThresholdPair.validate` before handing them over.
"""
from __future__ import annotations
import enum
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


class GateState(enum.Enum):
    IDLE = "idle"
    ENGAGED = "engaged"


class GateEventKind(enum.Enum):
    REP_START = "rep_start"
    REP_COMPLETE = "rep_complete"


@dataclass(frozen=True)
class GateEvent:
    """A gate transition.

    Attributes:
        kind: Engage (rep start) or release (rep complete).
        time: Clock reading of the window that caused the transition (s).
        value: Normalized value that crossed the threshold.
        duration: Engaged time of the completed rep (s); None for starts.
        counted_tut: True when `duration` was added to time-under-tension.
    """
    kind: GateEventKind
    time: float
    value: float
    duration: Optional[float] = None
    counted_tut: bool = False


class RepGate:
    """Two-state rep detector with rep and TUT counters."""

    def __init__(self):
        self.state = GateState.IDLE
        self.rep_start_time: Optional[float] = None
        self.reps = 0
        self.tut_seconds = 0.0

    @property
    def engaged(self) -> bool:
        return self.state is GateState.ENGAGED

    def reset(self) -> None:
        """Return to Idle and zero the counters."""
        self.state = GateState.IDLE
        self.rep_start_time = None
        self.reset_counters()

    def reset_counters(self) -> None:
        """Zero reps and TUT without touching the engaged state."""
        self.reps = 0
        self.tut_seconds = 0.0

    def update(self, x: float, now: float, hi: float, lo: float,
               recording: bool = False) -> Optional[GateEvent]:
        """Evaluate one normalized value; return the transition, if any."""
        if self.state is GateState.IDLE:
            if x > hi:
                self.state = GateState.ENGAGED
                self.rep_start_time = now
                logger.debug("gate engaged at %.3f (x=%.3f)", now, x)
                return GateEvent(GateEventKind.REP_START, now, x)
            return None

        if x < lo:
            duration = max(0.0, now - self.rep_start_time)
            self.state = GateState.IDLE
            self.rep_start_time = None
            self.reps += 1
            if recording:
                self.tut_seconds += duration
            logger.debug("rep %d complete (%.2fs engaged, recording=%s)", self.reps, duration, recording)
            return GateEvent(GateEventKind.REP_COMPLETE, now, x, duration=duration, counted_tut=recording)
        return None
