"""Replay recorded EMG samples as if they came from a device."""
from __future__ import annotations
import asyncio
from pathlib import Path
from typing import AsyncIterator, Iterator, Optional, Sequence

import numpy as np
import pandas as pd


def load_samples_csv(path: Path, column: str = "value") -> np.ndarray:
    """Load one column of a CSV recording as float volts."""
    df = pd.read_csv(path)
    if column not in df.columns:
        raise KeyError(f"column {column!r} not in {list(df.columns)}")
    return df[column].dropna().to_numpy(float)


def iter_batches(samples: Sequence[float], batch_size: int) -> Iterator[list[float]]:
    """Split a recording into delivery batches of `batch_size` samples."""
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    for start in range(0, len(samples), batch_size):
        yield [float(v) for v in samples[start:start + batch_size]]


async def replay_source(samples: Sequence[float], batch_size: int = 50,
                        sample_rate_hz: Optional[float] = None) -> AsyncIterator[list[float]]:
    """Async batch source over a recording.

    With `sample_rate_hz` set, each batch is delayed by its real-time duration;
    otherwise batches are delivered as fast as the consumer takes them.
    """
    delay = batch_size / float(sample_rate_hz) if sample_rate_hz else 0.0
    for batch in iter_batches(samples, batch_size):
        yield batch
        await asyncio.sleep(delay)
