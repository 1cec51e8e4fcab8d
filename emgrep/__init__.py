"""EMG repetition and time-under-tension tracking.

Modules are organized by pipeline stages:
- acquisition: serial/recorded sample sources
- preprocessing: fixed-window RMS envelope reduction
- realtime: envelope buffer, hysteresis rep gate, streaming pipeline
- normalization / calibration: MVC reference handling
- session / schemas: set recording and persisted set summaries
- io / db: state persistence and CSV export
- controller: single owner of the live pipeline and shared configuration
"""

__version__ = "0.1.0"
