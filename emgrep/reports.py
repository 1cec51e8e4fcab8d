"""Set history reporting: %MVC, TUT-per-rep targets, text and CSV export."""
from __future__ import annotations
from pathlib import Path
from typing import Iterable, Optional, Sequence

from .io.logger import CSVLogger
from .normalization import EPSILON
from .presets import PRESETS, ExercisePreset, find_preset
from .schemas import SetSummary

HISTORY_FIELDS = ["ts", "presetId", "reps", "tut", "dur", "avg", "peak", "mvc"]


def percent_mvc(rms: float, mvc_reference: float, eps: float = EPSILON) -> Optional[float]:
    """Envelope value as percent of the calibrated MVC, clipped to 0..999.

    None until an MVC has been captured.
    """
    if mvc_reference <= eps:
        return None
    return min(max(100.0 * rms / mvc_reference, 0.0), 999.0)


def tut_per_rep(summary: SetSummary) -> Optional[float]:
    if summary.reps <= 0:
        return None
    return summary.tut_sec / summary.reps


def tut_in_target(summary: SetSummary, preset: ExercisePreset) -> Optional[str]:
    """Classify the mean TUT per rep against the preset band.

    Returns "below", "within" or "above", or None for a set with no reps.
    """
    per_rep = tut_per_rep(summary)
    if per_rep is None:
        return None
    if per_rep < preset.target_tut_min_s:
        return "below"
    if per_rep > preset.target_tut_max_s:
        return "above"
    return "within"


def format_summary(summary: SetSummary, presets: Sequence[ExercisePreset] = PRESETS) -> str:
    preset = find_preset(summary.preset_id, presets)
    name = preset.name if preset else (summary.preset_id or "Unknown exercise")
    line = (f"{summary.timestamp:%Y-%m-%d %H:%M:%S} {name}: {summary.reps} reps, "
            f"TUT {summary.tut_sec:.1f} s, dur {summary.duration_sec:.1f} s, "
            f"avg {summary.avg_v:.5f} V, peak {summary.peak_v:.5f} V, MVC {summary.mvc_v:.5f} V")
    if preset is not None:
        verdict = tut_in_target(summary, preset)
        if verdict is not None:
            line += f" [{verdict} {preset.tut_hint()}]"
    return line


def export_history_csv(history: Iterable[SetSummary], path: Path) -> int:
    """Write history rows (wire field names) to CSV; returns the row count."""
    with CSVLogger(Path(path), HISTORY_FIELDS) as out:
        return out.write_many(s.to_json_dict() for s in history)
