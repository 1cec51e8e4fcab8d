import asyncio
import threading
import time

import numpy as np
import pandas as pd
import pytest

from emgrep.acquisition.replay import iter_batches, load_samples_csv, replay_source
from emgrep.acquisition import serial_source as serial_mod
from emgrep.acquisition.serial_source import SerialConfig, parse_line, read_serial_batches, serial_source
from emgrep.errors import ConnectionLostError


@pytest.mark.parametrize("line,expected", [
    ("0.125\n", 0.125),
    ("123456,-0.5\r\n", -0.5),
    ("garbage", None),
    ("", None),
    ("100,", None),
])
def test_parse_line(line, expected):
    assert parse_line(line) == expected


def test_iter_batches_keeps_order_and_tail():
    batches = list(iter_batches(list(range(7)), 3))
    assert batches == [[0, 1, 2], [3, 4, 5], [6]]
    with pytest.raises(ValueError):
        list(iter_batches([1.0], 0))


def test_load_samples_csv(tmp_path):
    path = tmp_path / "rec.csv"
    pd.DataFrame({"t": [0, 1, 2], "value": [0.1, -0.2, 0.3]}).to_csv(path, index=False)
    np.testing.assert_allclose(load_samples_csv(path), [0.1, -0.2, 0.3])
    with pytest.raises(KeyError):
        load_samples_csv(path, column="emg")


def test_replay_source_yields_all_batches():
    async def collect():
        return [b async for b in replay_source([1.0] * 25, batch_size=10)]

    batches = asyncio.run(collect())
    assert [len(b) for b in batches] == [10, 10, 5]


class FakeSerial:
    """Stands in for serial.Serial: scripted lines, then silence until closed."""

    script = []
    opened = []

    def __init__(self, port, baud, timeout=None):
        self.port = port
        self.timeout = timeout
        self.lines = list(FakeSerial.script)
        self.closed = False
        FakeSerial.opened.append(self)

    def readline(self):
        if self.lines:
            item = self.lines.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        time.sleep(0.01)
        return b""

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True


@pytest.fixture
def fake_serial(monkeypatch):
    FakeSerial.script = []
    FakeSerial.opened = []
    monkeypatch.setattr(serial_mod.serial, "Serial", FakeSerial)
    return FakeSerial


def test_serial_batches_split_and_flush_on_timeout(fake_serial):
    fake_serial.script = [b"0.1\n", b"10,0.2\n", b"bad\n", b"0.3\n", b""]
    it = read_serial_batches(SerialConfig(port="fake", scale=2.0), batch_size=2)
    assert next(it) == pytest.approx([0.2, 0.4])
    assert next(it) == pytest.approx([0.6])
    it.close()
    assert fake_serial.opened[0].closed


def test_serial_batches_stop_closes_silent_port(fake_serial):
    stop = threading.Event()
    stop.set()
    assert list(read_serial_batches(SerialConfig(port="fake"), stop=stop)) == []
    assert fake_serial.opened[0].closed


def test_serial_read_error_is_connection_loss(fake_serial):
    fake_serial.script = [serial_mod.serial.SerialException("unplugged")]
    with pytest.raises(ConnectionLostError):
        next(read_serial_batches(SerialConfig(port="fake")))
    assert fake_serial.opened[0].closed


def test_serial_source_closes_port_when_cancelled(fake_serial):
    fake_serial.script = [b"0.5\n", b""]

    async def scenario():
        got = []

        async def consume():
            async for batch in serial_source(SerialConfig(port="fake", read_timeout_s=0.01)):
                got.append(batch)

        task = asyncio.create_task(consume())
        for _ in range(200):
            if got:
                break
            await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        port = fake_serial.opened[0]
        for _ in range(200):
            if port.closed:
                break
            await asyncio.sleep(0.01)
        return got, port

    got, port = asyncio.run(scenario())
    assert got == [[0.5]]
    assert port.closed
