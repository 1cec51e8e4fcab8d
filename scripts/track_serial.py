#!/usr/bin/env python
"""Live rep tracking from a serial EMG stream.

Commands (type and press Enter):
  <empty>        start / end a set
  c              capture MVC
  p <preset_id>  select a preset
  t <hi> <lo>    override thresholds
  q              quit
"""
import argparse
import asyncio
import logging

from emgrep.acquisition.serial_source import SerialConfig, serial_source
from emgrep.config import TrackerConfig, settings
from emgrep.controller import TrackerController
from emgrep.errors import TrackerError
from emgrep.io.store import SqlStateStore
from emgrep.reports import format_summary


async def print_status(ctrl: TrackerController, period_s: float):
    while True:
        await asyncio.sleep(period_s)
        s = ctrl.status()
        env = "-" if s.rms is None else f"{s.rms:.6f}"
        pct = "-" if s.percent_mvc is None else f"{s.percent_mvc:.1f}"
        print(f"env={env} V peak={s.peak_v:.6f} V avg={s.avg_v:.6f} V %MVC={pct} "
              f"reps={s.reps} TUT={s.tut_seconds:.1f}s {'REC' if s.recording else ''}")


async def handle_command(ctrl: TrackerController, line: str) -> bool:
    parts = line.split()
    if not parts:
        if ctrl.recording:
            print(format_summary(await ctrl.finish_set(), ctrl.presets))
        else:
            ctrl.start_set()
            print("Set started.")
    elif parts[0] == "q":
        return False
    elif parts[0] == "c":
        print(f"Contract as hard as you can for {ctrl.cfg.calibration_seconds:.0f} s...")
        mvc = await ctrl.calibrate()
        print(f"MVC captured: {mvc:.6f} V")
    elif parts[0] == "p" and len(parts) == 2:
        p = ctrl.apply_preset(parts[1])
        print(f"{p.name} ({p.muscle}) hi={p.hi:.2f} lo={p.lo:.2f} target TUT {p.tut_hint()}")
    elif parts[0] == "t" and len(parts) == 3:
        pair = ctrl.set_thresholds(float(parts[1]), float(parts[2]))
        print(f"Thresholds hi={pair.hi:.2f} lo={pair.lo:.2f}")
    else:
        print(__doc__)
    return True


async def run(args):
    cfg = TrackerConfig(sample_rate_hz=args.fs)
    ctrl = TrackerController(cfg, store=SqlStateStore(args.db))
    ctrl.on_connection_error = lambda exc: print(f"Connection error: {exc}")
    ctrl.load()
    await ctrl.connect(serial_source(SerialConfig(port=args.port, baud=args.baud, scale=args.scale)))
    status = asyncio.create_task(print_status(ctrl, args.status_period))
    try:
        while True:
            line = await asyncio.to_thread(input)
            try:
                if not await handle_command(ctrl, line.strip()):
                    break
            except (TrackerError, ValueError) as e:
                print(f"Error: {e}")
    finally:
        status.cancel()
        await ctrl.close()


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--port", required=True)
    ap.add_argument("--baud", type=int, default=115200)
    ap.add_argument("--fs", type=int, default=1000)
    ap.add_argument("--scale", type=float, default=1.0, help="device units to volts")
    ap.add_argument("--db", default=settings.sqlite_path)
    ap.add_argument("--status-period", type=float, default=1.0)
    args = ap.parse_args()
    logging.basicConfig(level=settings.log_level)
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
