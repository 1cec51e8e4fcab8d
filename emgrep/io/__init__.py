"""Persistence and export of tracker state."""
