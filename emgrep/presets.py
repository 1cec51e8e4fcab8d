"""Exercise presets and threshold pairs.

A preset bundles the hysteresis thresholds tuned for one exercise with the
target time-under-tension band per rep. Thresholds are normalized fractions of
the MVC/peak reference (0..1).
"""
from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from .errors import InvalidThresholdError, UnknownPresetError


@dataclass(frozen=True)
class ThresholdPair:
    """Engage (`hi`) and release (`lo`) thresholds for the rep gate."""
    hi: float
    lo: float

    def validate(self) -> "ThresholdPair":
        """Reject non-finite, out-of-range or inverted pairs."""
        if not (math.isfinite(self.hi) and math.isfinite(self.lo)):
            raise InvalidThresholdError(f"thresholds must be finite (hi={self.hi}, lo={self.lo})")
        if not (0.0 < self.lo < 1.0 and 0.0 < self.hi < 1.0):
            raise InvalidThresholdError(f"thresholds must lie in (0, 1) (hi={self.hi}, lo={self.lo})")
        if self.lo >= self.hi:
            raise InvalidThresholdError(f"lo must be below hi (hi={self.hi}, lo={self.lo})")
        return self


@dataclass(frozen=True)
class ExercisePreset:
    """Immutable exercise configuration.

    Attributes:
        id: Stable identifier, persisted with each set.
        name: Display name.
        muscle: Target muscle (display only).
        hi: Engage threshold (normalized).
        lo: Release threshold (normalized).
        target_tut_min_s: Lower bound of the target TUT per rep (s).
        target_tut_max_s: Upper bound of the target TUT per rep (s).
        notes: Coaching cue.
    """
    id: str
    name: str
    muscle: str
    hi: float
    lo: float
    target_tut_min_s: float
    target_tut_max_s: float
    notes: str = ""

    @property
    def thresholds(self) -> ThresholdPair:
        return ThresholdPair(hi=self.hi, lo=self.lo)

    def tut_hint(self) -> str:
        return f"{self.target_tut_min_s:.1f}-{self.target_tut_max_s:.1f}s/rep"

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "muscle": self.muscle,
            "hi": self.hi,
            "lo": self.lo,
            "min": self.target_tut_min_s,
            "max": self.target_tut_max_s,
            "notes": self.notes,
        }

    @classmethod
    def from_json(cls, j: Mapping[str, Any]) -> "ExercisePreset":
        return cls(
            id=str(j["id"]),
            name=str(j["name"]),
            muscle=str(j["muscle"]),
            hi=float(j["hi"]),
            lo=float(j["lo"]),
            target_tut_min_s=float(j["min"]),
            target_tut_max_s=float(j["max"]),
            notes=j.get("notes") or "",
        )


PRESETS: tuple[ExercisePreset, ...] = (
    ExercisePreset("incline_db_press", "Incline Dumbbell Press", "Upper chest", 0.62, 0.34, 3.5, 5.0,
                   "2-3 sec eccentric; squeeze at top."),
    ExercisePreset("incline_db_fly", "Incline Dumbbell Fly", "Upper chest", 0.58, 0.30, 4.0, 6.0,
                   "Control stretch; avoid bottom bounce."),
    ExercisePreset("chest_dips", "Chest Dips (forward lean)", "Chest", 0.65, 0.35, 3.0, 4.5,
                   "Lean forward; avoid elbow flare."),
    ExercisePreset("lateral_raise", "DB/Cable Lateral Raise", "Delts", 0.55, 0.28, 3.0, 4.0,
                   "Lead with elbow; soft lockout."),
    ExercisePreset("bayesian_curl", "Bayesian Cable Curl", "Biceps (long head)", 0.60, 0.32, 3.5, 5.0,
                   "Stretch bias; keep humerus back."),
    ExercisePreset("incline_curl", "Incline DB Curl", "Biceps", 0.60, 0.32, 4.0, 5.5,
                   "Let biceps lengthen; avoid shoulder roll."),
    ExercisePreset("jm_press", "JM Press", "Triceps", 0.63, 0.36, 3.0, 4.0,
                   "Keep bar path consistent."),
    ExercisePreset("cable_crunch", "Cable Crunch", "Abs", 0.58, 0.30, 2.5, 3.5,
                   "Flex spine; avoid hip-hinge dominance."),
    ExercisePreset("hanging_leg_raises", "Hanging Straight Leg Raises", "Abs/Hip flexors", 0.62, 0.34, 3.0, 4.0,
                   "Posterior tilt; minimize swing."),
    ExercisePreset("lat_pull_in", "Cross-Body Single-Arm Lat Pull-In", "Lats", 0.57, 0.30, 3.0, 4.5,
                   "Drive elbow to hip."),
)


def find_preset(preset_id: Optional[str],
                presets: Sequence[ExercisePreset] = PRESETS) -> Optional[ExercisePreset]:
    """Return the preset with `preset_id`, or None."""
    for p in presets:
        if p.id == preset_id:
            return p
    return None


def get_preset(preset_id: str, presets: Sequence[ExercisePreset] = PRESETS) -> ExercisePreset:
    """Return the preset with `preset_id` or raise UnknownPresetError."""
    p = find_preset(preset_id, presets)
    if p is None:
        raise UnknownPresetError(preset_id)
    return p
