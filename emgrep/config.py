"""Configuration for the rep-tracking pipeline.

`TrackerConfig` centralizes the signal tunables (sampling, RMS window, history
horizon, calibration length) so live scripts, replay and tests share one
setup. `Settings` holds environment-driven deployment settings such as the
state database location.
"""
from dataclasses import dataclass
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass
class TrackerConfig:
    """Top-level configuration for envelope reduction and rep detection.

    Attributes:
        sample_rate_hz: Sampling rate of the inbound stream (Hz).
        rms_window_ms: Non-overlapping RMS window length (ms). 100 ms at
            1000 Hz gives 100 samples per envelope value.
        history_seconds: Time horizon kept in the rolling envelope history.
        calibration_seconds: Length of an MVC capture.
        default_hi: Engage threshold used when no preset or override exists.
        default_lo: Release threshold used when no preset or override exists.
        queue_maxsize: Bound on pending sample batches awaiting processing.
        epsilon: Smallest normalization denominator treated as non-zero.
    """

    sample_rate_hz: int = 1000
    rms_window_ms: int = 100
    history_seconds: int = 6
    calibration_seconds: float = 3.0
    default_hi: float = 0.6
    default_lo: float = 0.3
    queue_maxsize: int = 256
    epsilon: float = 1e-9

    @property
    def window_samples(self) -> int:
        """Samples per RMS window (at least one)."""
        return max(1, int(round(self.rms_window_ms * self.sample_rate_hz / 1000)))

    @property
    def history_capacity(self) -> int:
        """Number of envelope values kept in the rolling history."""
        return int(round(self.sample_rate_hz / self.window_samples)) * int(self.history_seconds)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="EMGREP_", env_file=".env", extra="ignore")

    sqlite_path: str = str(Path("data") / "emgrep.db")
    log_level: str = "INFO"


settings = Settings()
