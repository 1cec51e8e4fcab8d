"""Read EMG voltage samples from a serial stream in batches.

The firmware prints either "timestamp_us,value" or just "value" per line.
Only the value is used: the stream has a fixed, known sampling rate, so
timing is implicit in sample order.
"""
from __future__ import annotations
import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import AsyncIterator, Iterator, Optional

import serial

from ..errors import ConnectionLostError

logger = logging.getLogger(__name__)


@dataclass
class SerialConfig:
    """Serial connection configuration.

    Attributes:
        port: Serial port name (e.g., "COM3" on Windows or "/dev/ttyACM0" on Linux).
        baud: Baud rate. Must match the firmware (default 115200).
        scale: Multiplier from device units to volts (1.0 when the device
            already reports volts).
        read_timeout_s: Seconds a single line read may block before the
            pending batch is flushed.
    """
    port: str
    baud: int = 115200
    scale: float = 1.0
    read_timeout_s: float = 1.0


def parse_line(line: str) -> Optional[float]:
    """Return the sample value of one CSV line, or None if malformed."""
    parts = line.strip().split(',')
    if not parts or not parts[-1]:
        return None
    try:
        return float(parts[-1])
    except ValueError:
        return None


def read_serial_batches(cfg: SerialConfig, batch_size: int = 50,
                        stop: Optional[threading.Event] = None) -> Iterator[list[float]]:
    """Yield lists of up to `batch_size` samples (in volts) from a serial device.

    A read timeout flushes whatever has accumulated, so a batch may be shorter
    than `batch_size`. Malformed lines are skipped. Setting `stop` ends the
    generator within one read timeout and closes the port, even when the
    device has gone silent.
    """
    try:
        ser = serial.Serial(cfg.port, cfg.baud, timeout=cfg.read_timeout_s)
    except serial.SerialException as exc:
        raise ConnectionLostError(f"cannot open {cfg.port}: {exc}") from exc
    with ser:
        batch: list[float] = []
        while stop is None or not stop.is_set():
            try:
                raw = ser.readline()
            except serial.SerialException as exc:
                raise ConnectionLostError(f"serial read failed on {cfg.port}: {exc}") from exc
            line = raw.decode(errors="ignore")
            if line:
                val = parse_line(line)
                if val is not None:
                    batch.append(val * cfg.scale)
            if batch and (len(batch) >= batch_size or not line):
                yield batch
                batch = []


async def serial_source(cfg: SerialConfig, batch_size: int = 50) -> AsyncIterator[list[float]]:
    """Async adapter running the blocking reader in a worker thread.

    When the consumer stops iterating or is cancelled, the reader is told to
    stop; the worker thread then returns after at most one read timeout and
    the port is closed.
    """
    stop = threading.Event()
    it = read_serial_batches(cfg, batch_size, stop)
    try:
        while True:
            batch = await asyncio.to_thread(next, it, None)
            if batch is None:
                logger.info("serial stream on %s ended", cfg.port)
                return
            yield batch
    finally:
        stop.set()
        try:
            it.close()
        except ValueError:
            # a cancelled read is still running in its thread; it sees `stop` and returns
            pass
