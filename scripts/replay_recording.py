#!/usr/bin/env python
"""Offline replay: run a CSV recording (column 'value', volts) through the rep tracker."""
import argparse
import logging
from pathlib import Path

from emgrep.acquisition.replay import iter_batches, load_samples_csv
from emgrep.calibration import MvcCalibrator
from emgrep.config import TrackerConfig, settings
from emgrep.controller import TrackerController
from emgrep.io.store import MemoryStateStore, SqlStateStore
from emgrep.realtime.gate import GateEventKind
from emgrep.reports import format_summary


class SampleClock:
    """Clock driven by the number of samples replayed, so TUT reflects recording time."""

    def __init__(self, fs: float):
        self.fs = float(fs)
        self.samples = 0

    def __call__(self) -> float:
        return self.samples / self.fs


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("input_csv", type=Path)
    ap.add_argument("--column", default="value")
    ap.add_argument("--fs", type=int, default=1000)
    ap.add_argument("--preset", default=None)
    ap.add_argument("--mvc-csv", type=Path, default=None, help="recording of a maximal contraction")
    ap.add_argument("--save", action="store_true", help="persist the set to the state database")
    ap.add_argument("--db", default=settings.sqlite_path)
    args = ap.parse_args()
    logging.basicConfig(level=settings.log_level)

    cfg = TrackerConfig(sample_rate_hz=args.fs)
    clock = SampleClock(cfg.sample_rate_hz)
    store = SqlStateStore(args.db) if args.save else MemoryStateStore()
    ctrl = TrackerController(cfg, store=store, clock=clock)
    ctrl.load()
    if args.preset:
        ctrl.apply_preset(args.preset)

    if args.mvc_csv is not None:
        calibrator = MvcCalibrator(cfg.window_samples)
        calibrator.begin()
        for batch in iter_batches(load_samples_csv(args.mvc_csv, args.column), cfg.window_samples):
            calibrator.observe(batch)
        print(f"MVC reference: {ctrl.merge_calibration(calibrator.peak):.6f} V")

    samples = load_samples_csv(args.input_csv, args.column)
    ctrl.recorder.start()
    # one window per step so each window is stamped with its own end time
    for window in iter_batches(samples, cfg.window_samples):
        clock.samples += len(window)
        for tick in ctrl.process_batch(window):
            if tick.event is not None and tick.event.kind is GateEventKind.REP_COMPLETE:
                print(f"t={tick.time:.2f}s rep {ctrl.pipeline.gate.reps} ({tick.event.duration:.2f}s)")
    summary = ctrl.stop_set()
    print(format_summary(summary, ctrl.presets))


if __name__ == "__main__":
    main()
