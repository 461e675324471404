# src/expo_poll/db/time.py
"""Time utilities for database models."""

import time


def epoch_millis() -> int:
    """Return the current wall-clock time in integer epoch milliseconds."""
    return time.time_ns() // 1_000_000
