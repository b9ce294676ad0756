"""Process exit codes returned by the CLI.

A run that finishes exits with :data:`SUCCESS` even when some items
could not be downloaded; those are reported through the per-playlist
retry logs instead.
"""

from __future__ import annotations

SUCCESS: int = 0
"""Run finished (item failures included) or help/version was shown."""

INPUT_ERROR: int = 1
"""Malformed input or configuration, or a failed doctor check."""

UNEXPECTED_ERROR: int = 2
"""An unhandled exception escaped every known error boundary."""

KEYBOARD_INTERRUPT: int = 130
"""User pressed Ctrl+C (128 + SIGINT)."""
