import asyncio

import pytest

from emgrep.acquisition.replay import replay_source
from emgrep.calibration import MvcCalibrator, merge_mvc


def test_merge_never_lowers_reference():
    assert merge_mvc(1.0, 0.4) == 1.0
    assert merge_mvc(1.0, 1.7) == 1.7
    assert merge_mvc(0.0, 0.0) == 0.0


def test_observe_tracks_peak_window():
    cal = MvcCalibrator(window_samples=10)
    cal.observe([0.2] * 10 + [0.9] * 10 + [0.5] * 5)
    assert cal.peak == pytest.approx(0.9)
    assert cal.windows_seen == 2


def test_calibrate_returns_peak_from_source():
    samples = [0.1] * 100 + [1.2] * 100 + [0.4] * 100
    cal = MvcCalibrator(window_samples=100, duration_s=1.0)
    peak = asyncio.run(cal.calibrate(replay_source(samples, batch_size=30)))
    assert peak == pytest.approx(1.2)


def test_calibrate_times_out_with_zero_when_nothing_arrives():
    async def silent():
        await asyncio.sleep(10)
        yield [1.0] * 100

    cal = MvcCalibrator(window_samples=100)
    peak = asyncio.run(cal.calibrate(silent(), duration_s=0.05))
    assert peak == 0.0


def test_calibrate_stops_at_deadline():
    async def slow():
        yield [0.5] * 100
        await asyncio.sleep(10)
        yield [5.0] * 100

    cal = MvcCalibrator(window_samples=100)
    peak = asyncio.run(cal.calibrate(slow(), duration_s=0.1))
    assert peak == pytest.approx(0.5)


def test_each_capture_starts_fresh():
    cal = MvcCalibrator(window_samples=10)
    asyncio.run(cal.calibrate(replay_source([2.0] * 10, batch_size=10), duration_s=1.0))
    peak = asyncio.run(cal.calibrate(replay_source([0.3] * 15, batch_size=5), duration_s=1.0))
    assert peak == pytest.approx(0.3)
