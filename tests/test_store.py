from datetime import datetime

import pytest

from emgrep.errors import PersistenceError
from emgrep.io.store import KEY_HISTORY, History, MemoryStateStore, SqlStateStore
from emgrep.schemas import SetSummary


def summary(reps, preset_id=None):
    return SetSummary(timestamp=datetime(2026, 1, 2, 3, 4, 5), reps=reps, tut_sec=1.5 * reps,
                      duration_sec=30.0, avg_v=0.1, peak_v=0.4, mvc_v=0.5, preset_id=preset_id)


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        yield MemoryStateStore()
    else:
        s = SqlStateStore(tmp_path / "state" / "emgrep.db")
        yield s
        s.close()


def test_empty_store_loads_nothing(store):
    state = store.load()
    assert state.preset_id is None
    assert state.mvc_peak is None
    assert state.thresh_hi is None and state.thresh_lo is None
    assert state.history == []


def test_basic_values_round_trip(store):
    store.save_basic("jm_press", 0.00123, 0.63, 0.36)
    state = store.load()
    assert state.preset_id == "jm_press"
    assert state.mvc_peak == pytest.approx(0.00123)
    assert state.thresh_hi == pytest.approx(0.63)
    assert state.thresh_lo == pytest.approx(0.36)


def test_saving_twice_overwrites(store):
    store.save_basic("jm_press", 1.0, 0.6, 0.3)
    store.save_basic("cable_crunch", 2.0, 0.58, 0.30)
    assert store.load().preset_id == "cable_crunch"
    assert store.load().mvc_peak == 2.0


def test_history_round_trip_most_recent_first(store):
    store.save_history([summary(3, "jm_press"), summary(1)])
    hist = store.load().history
    assert [s.reps for s in hist] == [3, 1]
    assert hist[0].preset_id == "jm_press"


def test_sqlite_store_persists_across_instances(tmp_path):
    path = tmp_path / "emgrep.db"
    a = SqlStateStore(path)
    a.save_basic("lateral_raise", 0.5, 0.55, 0.28)
    a.save_history([summary(4)])
    a.close()
    b = SqlStateStore(path)
    state = b.load()
    b.close()
    assert state.preset_id == "lateral_raise"
    assert state.history[0].reps == 4


def test_corrupt_history_is_reported():
    store = MemoryStateStore({KEY_HISTORY: "{broken", "mvc_peak": "0.4"})
    with pytest.raises(PersistenceError):
        store.load()
    with pytest.raises(PersistenceError):
        store.load_history()
    assert store.load_basic().mvc_peak == pytest.approx(0.4)


def test_non_numeric_scalar_is_ignored():
    store = MemoryStateStore({"mvc_peak": "abc", "thresh_hi": "0.7"})
    state = store.load()
    assert state.mvc_peak is None
    assert state.thresh_hi == pytest.approx(0.7)


def test_history_prepends():
    h = History([summary(1)])
    h.prepend(summary(2))
    assert [s.reps for s in h] == [2, 1]
    assert len(h) == 2
