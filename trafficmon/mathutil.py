"""Small numeric helpers: clamping, smoothing and angle conversion."""

from __future__ import annotations

import math
from typing import TypeVar

T = TypeVar("T", int, float)


def clamp(v: T, lo: T, hi: T) -> T:
    """Limit ``v`` to the range [lo, hi]."""
    return max(lo, min(v, hi))


def ema(prev: float, cur: float, alpha: float) -> float:
    """Exponential moving average; alpha is clamped to [0, 1]."""
    alpha = clamp(alpha, 0.0, 1.0)
    return prev * (1.0 - alpha) + cur * alpha


def ema_seeded(prev: float, cur: float, alpha: float) -> float:
    """Exponential moving average that starts from ``cur`` when ``prev`` is NaN."""
    if math.isnan(prev):
        return cur
    return alpha * cur + (1.0 - alpha) * prev


def is_finite(v: float) -> bool:
    return math.isfinite(v)


def safe_dt_sec(dt_ns: int, min_dt: float = 1e-3, max_dt: float = 0.2) -> float:
    """Convert a nanosecond interval to seconds, clamped to [min_dt, max_dt]."""
    return clamp(float(dt_ns) * 1e-9, min_dt, max_dt)


def deg2rad(deg: float) -> float:
    return deg * math.pi / 180.0


def rad2deg(rad: float) -> float:
    return rad * 180.0 / math.pi