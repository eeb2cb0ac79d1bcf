"""Shared data records exchanged between the pipeline stages.

Coordinates:
- image coordinates are source-frame pixels (x right, y down)
- IPM coordinates are top-view pixels (x right, y down)

Timestamps are monotonic nanoseconds; speeds are km/h.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional

FrameId = int
TimestampNs = int
Point2f = tuple[float, float]

INVALID_TS: TimestampNs = -1


@dataclass
class BBox:
    """Axis-aligned box in image pixels; (x, y) is the top-left corner."""

    x: float = 0.0
    y: float = 0.0
    w: float = 0.0
    h: float = 0.0

    def x2(self) -> float:
        return self.x + self.w

    def y2(self) -> float:
        return self.y + self.h

    def cx(self) -> float:
        return self.x + 0.5 * self.w

    def cy(self) -> float:
        return self.y + 0.5 * self.h

    def valid(self) -> bool:
        return self.w > 0.0 and self.h > 0.0


@dataclass
class FramePacket:
    """One camera frame travelling through the pipeline."""

    frame_id: FrameId = 0
    ts_ns: TimestampNs = INVALID_TS
    bgr: Any = None
    gray: Any = None
    small_bgr: Any = None
    width: int = 0
    height: int = 0

    def valid(self) -> bool:
        return (
            self.ts_ns != INVALID_TS
            and self.bgr is not None
            and getattr(self.bgr, "size", 0) > 0
        )


@dataclass
class Detection:
    """A detector hit in image pixels."""

    ts_ns: TimestampNs = INVALID_TS
    bbox_img: BBox = None  # type: ignore[assignment]
    class_id: int = -1
    score: float = 0.0

    def __post_init__(self) -> None:
        if self.bbox_img is None:
            self.bbox_img = BBox()


@dataclass
class Track:
    """A tracked object with a persistent id."""

    ts_ns: TimestampNs = INVALID_TS
    track_id: int = -1
    bbox_img: BBox = None  # type: ignore[assignment]
    class_id: int = -1
    score: float = 0.0
    age: int = 0
    lost: int = 0

    def __post_init__(self) -> None:
        if self.bbox_img is None:
            self.bbox_img = BBox()


@dataclass
class TrackFoot:
    """Ground contact point of a track in image and IPM pixels."""

    ts_ns: TimestampNs = INVALID_TS
    track_id: int = -1
    class_id: int = -1
    foot_img: Point2f = (0.0, 0.0)
    foot_ipm: Point2f = (0.0, 0.0)
    zone_id: Optional[int] = None
    lane_id: Optional[int] = None


class SpeedQuality(IntEnum):
    OK = 0
    NO_PREV = 1
    BAD_DT = 2
    OUTLIER_CLAMPED = 3
    NO_ZONE = 4
    INVALID_INPUT = 5


@dataclass
class SpeedResult:
    """Speed estimate for one track at one timestamp."""

    ts_ns: TimestampNs = INVALID_TS
    track_id: int = -1
    class_id: int = -1
    speed_kmh: float = 0.0
    quality: SpeedQuality = SpeedQuality.OK
    zone_id: Optional[int] = None
    lane_id: Optional[int] = None
    dt_s: float = 0.0
    displacement_m: float = 0.0