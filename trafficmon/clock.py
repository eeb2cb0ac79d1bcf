"""Monotonic nanosecond timestamps."""

import time


def now_ns() -> int:
    """Current monotonic time in nanoseconds, unaffected by wall-clock changes."""
    return time.monotonic_ns()


def ns_to_sec(ns: int) -> float:
    """Convert nanoseconds to seconds."""
    return float(ns) * 1e-9