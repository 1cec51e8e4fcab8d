from datetime import datetime

import pytest
from pydantic import ValidationError

from emgrep.errors import SessionStateError
from emgrep.realtime.gate import RepGate
from emgrep.session import SetRecorder

WHEN = datetime(2026, 3, 1, 18, 30, 0)


def make_recorder(times):
    it = iter(times)
    gate = RepGate()
    return gate, SetRecorder(gate, clock=lambda: next(it), wall_clock=lambda: WHEN)


def test_stop_without_start_is_rejected():
    _, rec = make_recorder([])
    with pytest.raises(SessionStateError):
        rec.stop(avg_v=0.0, peak_v=0.0, mvc_v=0.0)


def test_start_twice_is_rejected():
    _, rec = make_recorder([0.0])
    rec.start()
    with pytest.raises(SessionStateError):
        rec.start()


def test_start_resets_counters_and_stop_builds_summary():
    gate, rec = make_recorder([100.0, 130.5])
    gate.reps = 7
    gate.tut_seconds = 12.0
    session = rec.start()
    assert session.recording and session.reps == 0 and session.tut_seconds == 0.0

    gate.update(0.9, 101.0, 0.6, 0.3, recording=rec.recording)
    gate.update(0.1, 104.0, 0.6, 0.3, recording=rec.recording)

    summary = rec.stop(avg_v=0.2, peak_v=0.9, mvc_v=1.1, preset_id="jm_press")
    assert summary.reps == 1
    assert summary.tut_sec == pytest.approx(3.0)
    assert summary.duration_sec == pytest.approx(30.5)
    assert summary.timestamp == WHEN
    assert summary.preset_id == "jm_press"
    assert summary.mvc_v == 1.1
    assert not rec.recording
    assert gate.reps == 0


def test_summary_is_immutable():
    _, rec = make_recorder([0.0, 1.0])
    rec.start()
    summary = rec.stop(avg_v=0.0, peak_v=0.0, mvc_v=0.0)
    with pytest.raises(ValidationError):
        summary.reps = 3
