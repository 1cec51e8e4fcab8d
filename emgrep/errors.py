"""Exception hierarchy for the tracker.

None of these are fatal: callers either recover locally or surface the
message to the user.
"""


class TrackerError(Exception):
    """Base class for tracker errors."""


class NotConnectedError(TrackerError):
    """Raised when an operation needs a live sample stream and none is attached."""


class SessionStateError(TrackerError):
    """Raised on set start/stop requests that do not match the recording state."""


class InvalidThresholdError(TrackerError, ValueError):
    """Raised when a threshold pair is rejected at the configuration boundary."""


class UnknownPresetError(TrackerError, KeyError):
    """Raised when a preset id is not in the catalogue."""


class PersistenceError(TrackerError):
    """Raised when saving or loading persisted state fails."""


class ConnectionLostError(TrackerError):
    """Raised by sample sources when the device stream drops."""
