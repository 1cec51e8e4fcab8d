"""Streaming stages: envelope history, rep gate and the per-window pipeline."""
