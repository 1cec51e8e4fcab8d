"""Preprocessing subpackage: raw samples to RMS envelope values."""
from .envelope import WindowReducer, window_rms
