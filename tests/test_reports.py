import csv
from datetime import datetime

import pytest

from emgrep.presets import get_preset
from emgrep.reports import export_history_csv, format_summary, percent_mvc, tut_in_target, tut_per_rep
from emgrep.schemas import SetSummary


def summary(reps, tut, preset_id="jm_press"):
    return SetSummary(timestamp=datetime(2026, 2, 3, 4, 5, 6), reps=reps, tut_sec=tut, duration_sec=40.0,
                      avg_v=0.1, peak_v=0.3, mvc_v=0.4, preset_id=preset_id)


def test_percent_mvc():
    assert percent_mvc(0.2, 0.0) is None
    assert percent_mvc(0.2, 0.4) == pytest.approx(50.0)
    assert percent_mvc(100.0, 0.01) == 999.0


def test_tut_per_rep_and_target_band():
    jm = get_preset("jm_press")  # 3.0-4.0 s/rep
    assert tut_per_rep(summary(0, 0.0)) is None
    assert tut_in_target(summary(0, 0.0), jm) is None
    assert tut_in_target(summary(5, 10.0), jm) == "below"
    assert tut_in_target(summary(5, 17.5), jm) == "within"
    assert tut_in_target(summary(5, 25.0), jm) == "above"


def test_format_summary_names_preset_and_verdict():
    line = format_summary(summary(5, 17.5))
    assert "JM Press" in line
    assert "5 reps" in line
    assert "within" in line


def test_format_summary_unknown_preset():
    assert "Unknown exercise" in format_summary(summary(1, 1.0, preset_id=None))


def test_export_history_csv(tmp_path):
    path = tmp_path / "out" / "history.csv"
    n = export_history_csv([summary(5, 17.5), summary(2, 6.0, preset_id=None)], path)
    assert n == 2
    with open(path, newline="") as fh:
        rows = list(csv.DictReader(fh))
    assert rows[0]["presetId"] == "jm_press"
    assert rows[1]["presetId"] == ""
    assert float(rows[0]["tut"]) == pytest.approx(17.5)


def test_csv_logger_append_keeps_single_header(tmp_path):
    from emgrep.io.logger import CSVLogger

    path = tmp_path / "trace.csv"
    with CSVLogger(path, ["t", "rms"]) as log:
        log.write({"t": 0.1, "rms": 0.5})
    with CSVLogger(path, ["t", "rms"], append=True) as log:
        log.write({"t": 0.2, "rms": 0.6})
    lines = path.read_text().splitlines()
    assert lines[0] == "t,rms"
    assert len(lines) == 3
