import pytest

from emgrep.realtime.gate import GateEventKind, GateState, RepGate

HI, LO = 0.6, 0.3
EPS = 1e-3


def feed(gate, values, recording=False, t0=0.0, dt=0.1):
    events = []
    for i, x in enumerate(values):
        ev = gate.update(x, t0 + i * dt, HI, LO, recording)
        if ev is not None:
            events.append(ev)
    return events


def test_single_cycle_counts_one_rep():
    gate = RepGate()
    events = feed(gate, [0.0, HI + EPS, HI + EPS, LO - EPS])
    assert [e.kind for e in events] == [GateEventKind.REP_START, GateEventKind.REP_COMPLETE]
    assert gate.reps == 1
    assert gate.state is GateState.IDLE
    assert gate.rep_start_time is None


def test_equal_to_hi_does_not_engage():
    gate = RepGate()
    assert feed(gate, [HI, HI, HI]) == []
    assert gate.state is GateState.IDLE


def test_falling_exactly_to_lo_does_not_release():
    gate = RepGate()
    feed(gate, [HI + EPS, 0.5, LO, LO])
    assert gate.engaged
    assert gate.reps == 0


def test_values_between_thresholds_keep_state():
    gate = RepGate()
    feed(gate, [0.45, 0.5, 0.35])
    assert not gate.engaged
    feed(gate, [0.9, 0.45, 0.5, 0.35])
    assert gate.engaged


def test_tut_only_accumulates_while_recording():
    gate = RepGate()
    events = feed(gate, [0.9, 0.9, 0.1], recording=False, dt=1.0)
    assert gate.reps == 1
    assert gate.tut_seconds == 0.0
    assert events[-1].duration == pytest.approx(2.0)
    assert not events[-1].counted_tut

    events = feed(gate, [0.9, 0.8, 0.7, 0.1], recording=True, t0=10.0, dt=0.5)
    assert gate.reps == 2
    assert gate.tut_seconds == pytest.approx(1.5)
    assert events[-1].counted_tut


def test_reset_counters_keeps_engaged_state():
    gate = RepGate()
    feed(gate, [0.9, 0.1, 0.9])
    gate.reset_counters()
    assert gate.reps == 0
    assert gate.engaged
    gate.reset()
    assert not gate.engaged


def test_many_cycles():
    gate = RepGate()
    feed(gate, [0.1, 0.7, 0.2] * 5)
    assert gate.reps == 5
