"""Tracker controller: the single owner of the live pipeline.

All mutation of envelope history, running statistics and gate state goes
through one consumer task that takes sample batches off a bounded queue in
arrival order. Producers (device readers) only ever call `submit`, which never
blocks. Shared configuration (thresholds, preset, MVC reference) is changed
through explicit methods here and is read once per batch by the consumer, so a
change made while a batch is queued applies from the next batch on.
"""
from __future__ import annotations
import asyncio
import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterable, AsyncIterator, Callable, Iterable, Optional, Sequence, Union

import numpy as np

from .calibration import MvcCalibrator, merge_mvc
from .config import TrackerConfig
from .errors import (ConnectionLostError, InvalidThresholdError, NotConnectedError, PersistenceError,
                     SessionStateError, TrackerError)
from .io.store import History, MemoryStateStore, PersistedState, StateStore
from .normalization import clip_for_display, normalize_history
from .presets import PRESETS, ExercisePreset, ThresholdPair, find_preset, get_preset
from .realtime.pipeline import SignalPipeline, TickResult
from .reports import percent_mvc
from .schemas import SetSummary
from .session import SetRecorder, SetSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackerStatus:
    """Read-only snapshot for display."""
    connected: bool
    recording: bool
    reps: int
    tut_seconds: float
    rms: Optional[float]
    ratio: Optional[float]
    avg_v: float
    peak_v: float
    mvc_v: float
    hi: float
    lo: float
    preset_id: Optional[str]
    percent_mvc: Optional[float]
    dropped_batches: int


async def _tap_batches(queue: asyncio.Queue) -> AsyncIterator[list[float]]:
    while True:
        yield await queue.get()


class TrackerController:
    """Owns the signal pipeline, set recorder, shared configuration and history."""

    def __init__(self, cfg: Optional[TrackerConfig] = None, store: Optional[StateStore] = None,
                 presets: Sequence[ExercisePreset] = PRESETS,
                 clock: Callable[[], float] = time.monotonic,
                 wall_clock: Callable[[], datetime] = datetime.now):
        if not presets:
            raise ValueError("at least one preset is required")
        self.cfg = cfg or TrackerConfig()
        self.store = store if store is not None else MemoryStateStore()
        self.presets = tuple(presets)
        self.pipeline = SignalPipeline.from_config(self.cfg, clock=clock)
        self.recorder = SetRecorder(self.pipeline.gate, clock=clock, wall_clock=wall_clock)

        self.preset: Optional[ExercisePreset] = None
        self.thresholds = ThresholdPair(self.cfg.default_hi, self.cfg.default_lo)
        self.mvc_reference = 0.0
        self.history = History()
        self.latest: Optional[TickResult] = None
        self.dropped_batches = 0
        self.on_connection_error: Optional[Callable[[BaseException], None]] = None

        self._queue: Optional[asyncio.Queue] = None
        self._reader: Optional[asyncio.Task] = None
        self._consumer: Optional[asyncio.Task] = None
        self._taps: list[asyncio.Queue] = []
        self._connected = False

    # ------------------------------------------------------------------ state

    def load(self) -> PersistedState:
        """Restore preset, MVC, thresholds and history, defaulting what is missing.

        The scalars are applied before the history is read, so a corrupt
        history (PersistenceError, re-raised) leaves them in effect with an
        empty history.
        """
        try:
            state = self.store.load_basic()
        except PersistenceError:
            logger.exception("failed to load persisted state")
            raise
        preset = find_preset(state.preset_id, self.presets) or self.presets[0]
        self.preset = preset
        self.thresholds = preset.thresholds
        if state.mvc_peak is not None and math.isfinite(state.mvc_peak) and state.mvc_peak > 0:
            self.mvc_reference = state.mvc_peak
        else:
            self.mvc_reference = 0.0
        hi = state.thresh_hi if state.thresh_hi is not None else preset.hi
        lo = state.thresh_lo if state.thresh_lo is not None else preset.lo
        try:
            self.thresholds = ThresholdPair(hi, lo).validate()
        except InvalidThresholdError as exc:
            logger.warning("ignoring stored thresholds, using preset %s: %s", preset.id, exc)
        self.history.replace([])
        try:
            state.history = self.store.load_history()
        except PersistenceError:
            logger.exception("failed to load set history, keeping preset %s and calibration", preset.id)
            raise
        self.history.replace(state.history)
        logger.info("loaded state: preset=%s mvc=%.6f hi=%.2f lo=%.2f sets=%d",
                    preset.id, self.mvc_reference, self.thresholds.hi, self.thresholds.lo, len(self.history))
        return state

    def save_basic(self) -> None:
        preset_id = self.preset.id if self.preset else self.presets[0].id
        self._persist(self.store.save_basic, preset_id, self.mvc_reference,
                      self.thresholds.hi, self.thresholds.lo)

    def _persist(self, fn, *args) -> None:
        try:
            fn(*args)
        except PersistenceError:
            logger.exception("persisting state failed; in-memory state kept")
            raise

    def apply_preset(self, preset: Union[str, ExercisePreset], persist: bool = True) -> ExercisePreset:
        """Select a preset and take over its threshold pair."""
        if isinstance(preset, str):
            preset = get_preset(preset, self.presets)
        pair = preset.thresholds.validate()
        self.preset = preset
        self.thresholds = pair
        logger.info("preset %s applied (hi=%.2f lo=%.2f)", preset.id, pair.hi, pair.lo)
        if persist:
            self.save_basic()
        return preset

    def set_thresholds(self, hi: float, lo: float, persist: bool = True) -> ThresholdPair:
        """Override the threshold pair; an invalid pair leaves the current one in place."""
        pair = ThresholdPair(float(hi), float(lo)).validate()
        self.thresholds = pair
        logger.info("thresholds set to hi=%.2f lo=%.2f", pair.hi, pair.lo)
        if persist:
            self.save_basic()
        return pair

    def merge_calibration(self, observed_peak: float, persist: bool = True) -> float:
        """Raise the MVC reference to `observed_peak` if it is larger."""
        previous = self.mvc_reference
        self.mvc_reference = merge_mvc(previous, observed_peak)
        logger.info("MVC reference %.6f -> %.6f V (observed %.6f)", previous, self.mvc_reference, observed_peak)
        if persist:
            self.save_basic()
        return self.mvc_reference

    # -------------------------------------------------------------- streaming

    @property
    def connected(self) -> bool:
        return self._connected

    def _ensure_queue(self) -> asyncio.Queue:
        if self._queue is None:
            self._queue = asyncio.Queue(maxsize=self.cfg.queue_maxsize)
        return self._queue

    def process_batch(self, samples: Iterable[float]) -> list[TickResult]:
        """Run one delivered batch through the pipeline (single writer)."""
        hi, lo = self.thresholds.hi, self.thresholds.lo
        results = self.pipeline.process(samples, hi, lo, self.mvc_reference, self.recorder.recording)
        if results:
            self.latest = results[-1]
        return results

    def submit(self, samples: Iterable[float]) -> bool:
        """Queue a batch for the consumer; drops it if the queue is full."""
        batch = [float(v) for v in samples]
        queue = self._ensure_queue()
        try:
            queue.put_nowait(batch)
        except asyncio.QueueFull:
            self.dropped_batches += 1
            logger.warning("ingest queue full, dropped batch of %d samples (%d dropped)",
                           len(batch), self.dropped_batches)
            return False
        return True

    def _handle(self, batch: list[float]) -> None:
        for tap in self._taps:
            tap.put_nowait(batch)
        self.process_batch(batch)

    async def run(self) -> None:
        """Consume queued batches forever, in order."""
        queue = self._ensure_queue()
        while True:
            batch = await queue.get()
            try:
                self._handle(batch)
            finally:
                queue.task_done()

    async def drain(self) -> None:
        """Wait until every batch submitted so far has been processed."""
        queue = self._ensure_queue()
        if self._consumer is None or self._consumer.done():
            while not queue.empty():
                self._handle(queue.get_nowait())
                queue.task_done()
            return
        await queue.join()

    async def connect(self, source: AsyncIterable[Iterable[float]]) -> None:
        """Attach a batch source and start reading and consuming."""
        if self._connected:
            raise TrackerError("already connected")
        self._ensure_queue()
        self._connected = True
        if self._consumer is None or self._consumer.done():
            self._consumer = asyncio.create_task(self.run())
        self._reader = asyncio.create_task(self._read(source))
        logger.info("sample stream connected")

    async def _read(self, source: AsyncIterable[Iterable[float]]) -> None:
        try:
            async for batch in source:
                self.submit(batch)
        except (ConnectionLostError, OSError) as exc:
            logger.warning("sample stream lost: %s", exc)
            self._mark_disconnected(exc)
            return
        except Exception as exc:
            logger.exception("sample stream failed")
            self._mark_disconnected(exc)
            return
        logger.info("sample stream ended")
        self._mark_disconnected(None)

    def _mark_disconnected(self, exc: Optional[BaseException]) -> None:
        self._connected = False
        if exc is not None and self.on_connection_error is not None:
            self.on_connection_error(exc)

    async def disconnect(self) -> None:
        """Stop reading from the source; queued batches are still processed."""
        reader, self._reader = self._reader, None
        if reader is not None and not reader.done():
            reader.cancel()
            await asyncio.gather(reader, return_exceptions=True)
        self._connected = False

    async def close(self) -> None:
        """Disconnect, process what is queued, and stop the consumer."""
        await self.disconnect()
        await self.drain()
        consumer, self._consumer = self._consumer, None
        if consumer is not None:
            consumer.cancel()
            await asyncio.gather(consumer, return_exceptions=True)

    # ------------------------------------------------------------ calibration

    async def calibrate(self, duration_s: Optional[float] = None) -> float:
        """Capture an MVC from the live stream and merge it; returns the new reference.

        The capture sees the same batches as the live pipeline, in the same
        order, through its own reducer. Live processing continues meanwhile.
        """
        if not self._connected:
            raise NotConnectedError("connect a sample stream before calibrating")
        calibrator = MvcCalibrator(self.cfg.window_samples, self.cfg.calibration_seconds)
        tap: asyncio.Queue = asyncio.Queue()
        self._taps.append(tap)
        try:
            observed = await calibrator.calibrate(_tap_batches(tap), duration_s)
        finally:
            self._taps.remove(tap)
        return self.merge_calibration(observed)

    # ------------------------------------------------------------------- sets

    @property
    def recording(self) -> bool:
        return self.recorder.recording

    def start_set(self) -> SetSession:
        if not self._connected:
            raise NotConnectedError("connect a sample stream before starting a set")
        return self.recorder.start()

    def stop_set(self) -> SetSummary:
        """Finalize the current set, prepend it to history and persist history."""
        stats = self.pipeline.envelope.stats()
        summary = self.recorder.stop(
            avg_v=stats.avg_v,
            peak_v=stats.peak_v,
            mvc_v=self.mvc_reference,
            preset_id=self.preset.id if self.preset else None,
        )
        self.history.prepend(summary)
        self._persist(self.store.save_history, self.history.items())
        return summary

    async def finish_set(self) -> SetSummary:
        """Stop the set after all batches delivered so far have been evaluated."""
        await self.drain()
        return self.stop_set()

    def reset_session(self) -> None:
        """Clear envelope history, running peak and gate state."""
        if self.recorder.recording:
            raise SessionStateError("stop the current set before resetting the session")
        self.pipeline.reset()
        self.latest = None

    # ---------------------------------------------------------------- display

    def envelope_ratios(self, clip: bool = True) -> np.ndarray:
        """Normalized envelope history for plotting."""
        stats = self.pipeline.envelope.stats()
        ratios = normalize_history(self.pipeline.envelope.values(), self.mvc_reference,
                                   stats.peak_v, self.cfg.epsilon)
        return clip_for_display(ratios) if clip else ratios

    def status(self) -> TrackerStatus:
        stats = self.pipeline.envelope.stats()
        gate = self.pipeline.gate
        rms = self.latest.rms if self.latest else None
        return TrackerStatus(
            connected=self._connected,
            recording=self.recorder.recording,
            reps=gate.reps,
            tut_seconds=gate.tut_seconds,
            rms=rms,
            ratio=self.latest.ratio if self.latest else None,
            avg_v=stats.avg_v,
            peak_v=stats.peak_v,
            mvc_v=self.mvc_reference,
            hi=self.thresholds.hi,
            lo=self.thresholds.lo,
            preset_id=self.preset.id if self.preset else None,
            percent_mvc=percent_mvc(rms, self.mvc_reference, self.cfg.epsilon) if rms is not None else None,
            dropped_batches=self.dropped_batches,
        )
