"""Per-track speed estimation from IPM footpoints."""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from typing import Optional, Sequence

from trafficmon.mathutil import clamp, ema_seeded
from trafficmon.types import INVALID_TS, Point2f, SpeedQuality, SpeedResult, TrackFoot


@dataclass
class TrackState:
    """Last known position (IPM px), time (ns) and speed (km/h) of one track."""

    prev_foot_ipm: Point2f = (0.0, 0.0)
    prev_ts_ns: int = 0
    prev_speed_kmh: float = 0.0
    initialized: bool = False


class TrackStateTable:
    """Map from track id to :class:`TrackState`."""

    def __init__(self) -> None:
        self._table: dict[int, TrackState] = {}

    def get(self, track_id: int) -> TrackState:
        """Return the state of a track, creating an empty one if missing."""
        return self._table.setdefault(track_id, TrackState())

    def has(self, track_id: int) -> bool:
        return track_id in self._table

    def erase(self, track_id: int) -> None:
        self._table.pop(track_id, None)

    def purge(self, now_ns: int, timeout_ns: int) -> None:
        """Drop initialised states not updated for more than ``timeout_ns``."""
        self._table = {
            tid: st
            for tid, st in self._table.items()
            if not (st.initialized and now_ns - st.prev_ts_ns > timeout_ns)
        }


@dataclass
class SpeedOptions:
    """Tuning parameters of :class:`SpeedEstimator`."""

    ema_alpha: float = 0.3  # smoothing weight of the new speed
    dt_min: float = 0.01  # lower bound on dt [s]
    dt_max: float = 0.2  # upper bound on dt [s]
    max_speed_kmh: float = 200.0  # clamp for unrealistic speeds
    purge_timeout_sec: float = 1.0  # forget tracks unseen for this long
    min_displacement_px: float = 1.5  # movements below this count as zero
    require_zone: bool = False  # mark footpoints outside any zone as NO_ZONE


class SpeedEstimator:
    """Estimates smoothed speeds from successive footpoints of each track."""

    def __init__(self, options: Optional[SpeedOptions] = None):
        opts = options if options is not None else SpeedOptions()
        dt_min = opts.dt_min if opts.dt_min > 0.0 else 0.01
        self.options = dataclasses.replace(
            opts,
            ema_alpha=clamp(float(opts.ema_alpha), 0.0, 1.0),
            dt_min=dt_min,
            dt_max=opts.dt_max if opts.dt_max >= dt_min else dt_min,
            max_speed_kmh=opts.max_speed_kmh if opts.max_speed_kmh > 0.0 else 200.0,
            purge_timeout_sec=max(0.0, opts.purge_timeout_sec),
            min_displacement_px=max(0.0, opts.min_displacement_px),
        )
        self._states = TrackStateTable()

    def compute(
        self, feet: Sequence[TrackFoot], meters_per_pixel: float
    ) -> list[SpeedResult]:
        """Return one speed result per footpoint, updating the per-track state."""

        def base(f: TrackFoot) -> SpeedResult:
            return SpeedResult(
                ts_ns=f.ts_ns,
                track_id=f.track_id,
                class_id=f.class_id,
                zone_id=f.zone_id,
                lane_id=f.lane_id,
            )

        if not (meters_per_pixel > 0.0) or not math.isfinite(meters_per_pixel):
            return [
                dataclasses.replace(base(f), quality=SpeedQuality.INVALID_INPUT)
                for f in feet
            ]

        opts = self.options
        now_ns = max((f.ts_ns for f in feet), default=0)
        now_ns = max(now_ns, 0)
        timeout_ns = int(opts.purge_timeout_sec * 1e9)
        if now_ns > 0 and timeout_ns > 0:
            self._states.purge(now_ns, timeout_ns)

        return [self._compute_one(f, base(f), meters_per_pixel) for f in feet]

    def _compute_one(
        self, f: TrackFoot, s: SpeedResult, meters_per_pixel: float
    ) -> SpeedResult:
        opts = self.options
        fx, fy = f.foot_ipm
        if (
            f.track_id < 0
            or f.ts_ns == INVALID_TS
            or not math.isfinite(fx)
            or not math.isfinite(fy)
        ):
            s.quality = SpeedQuality.INVALID_INPUT
            return s

        if opts.require_zone and f.zone_id is None:
            s.quality = SpeedQuality.NO_ZONE
            return s

        st = self._states.get(f.track_id)
        if not st.initialized:
            st.prev_foot_ipm = (fx, fy)
            st.prev_ts_ns = f.ts_ns
            st.prev_speed_kmh = 0.0
            st.initialized = True
            s.quality = SpeedQuality.NO_PREV
            return s

        dt_raw = (float(f.ts_ns) - float(st.prev_ts_ns)) * 1e-9
        if not dt_raw > 0.0:
            s.speed_kmh = st.prev_speed_kmh
            s.quality = SpeedQuality.BAD_DT
            return s

        dt_s = clamp(dt_raw, float(opts.dt_min), float(opts.dt_max))
        px, py = st.prev_foot_ipm
        disp_px = math.hypot(fx - px, fy - py)
        if disp_px < opts.min_displacement_px:
            disp_px = 0.0

        disp_m = disp_px * meters_per_pixel
        speed_kmh = disp_m / dt_s * 3.6

        quality = SpeedQuality.OK
        if not math.isfinite(speed_kmh):
            speed_kmh = 0.0
            quality = SpeedQuality.INVALID_INPUT
        if speed_kmh > opts.max_speed_kmh:
            speed_kmh = float(opts.max_speed_kmh)
            quality = SpeedQuality.OUTLIER_CLAMPED

        smoothed = ema_seeded(st.prev_speed_kmh, speed_kmh, opts.ema_alpha)

        st.prev_foot_ipm = (fx, fy)
        st.prev_ts_ns = f.ts_ns
        st.prev_speed_kmh = smoothed

        s.speed_kmh = smoothed
        s.quality = quality
        s.dt_s = dt_s
        s.displacement_m = disp_m
        return s