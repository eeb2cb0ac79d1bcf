"""Greedy IOU tracker that assigns persistent ids to detections."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Optional, Sequence

from trafficmon.mathutil import clamp
from trafficmon.types import BBox, Detection, TimestampNs, Track


def _clamp01(v: float) -> float:
    return clamp(float(v), 0.0, 1.0)


@dataclass
class TrackerOptions:
    """Tuning parameters of :class:`IouTracker`."""

    iou_threshold: float = 0.3  # minimum IOU for a detection to continue a track
    max_age: int = 10  # frames a track may go unmatched before removal
    min_hits: int = 2  # matches needed before a track is reported
    bbox_ema_alpha: float = 0.7  # weight of the new box when smoothing
    class_aware: bool = True  # only match detections of the same class


def _area(b: BBox) -> float:
    return b.w * b.h if b.valid() else 0.0


def _intersection_area(a: BBox, b: BBox) -> float:
    if not a.valid() or not b.valid():
        return 0.0
    iw = min(a.x2(), b.x2()) - max(a.x, b.x)
    ih = min(a.y2(), b.y2()) - max(a.y, b.y)
    if iw <= 0.0 or ih <= 0.0:
        return 0.0
    return iw * ih


def iou(a: BBox, b: BBox) -> float:
    """Intersection over union of two boxes; 0 when either box is invalid."""
    inter = _intersection_area(a, b)
    union = _area(a) + _area(b) - inter
    if union <= 0.0:
        return 0.0
    return inter / union


def smooth_bbox(prev: BBox, cur: BBox, alpha: float) -> BBox:
    """Blend two boxes: ``alpha`` weights ``cur``; an invalid ``prev`` yields ``cur``."""
    if not prev.valid():
        return dataclasses.replace(cur)
    a = _clamp01(alpha)
    return BBox(
        x=a * cur.x + (1.0 - a) * prev.x,
        y=a * cur.y + (1.0 - a) * prev.y,
        w=a * cur.w + (1.0 - a) * prev.w,
        h=a * cur.h + (1.0 - a) * prev.h,
    )


@dataclass(eq=False)
class _TrackState:
    pub: Track
    hit_count: int = 0
    confirmed: bool = False


def _copy_track(t: Track) -> Track:
    return dataclasses.replace(t, bbox_img=dataclasses.replace(t.bbox_img))


class IouTracker:
    """Matches detections to tracks greedily by IOU, with class gating and box smoothing."""

    def __init__(self, options: Optional[TrackerOptions] = None):
        opts = options if options is not None else TrackerOptions()
        self.options = dataclasses.replace(
            opts,
            iou_threshold=_clamp01(opts.iou_threshold),
            max_age=max(0, opts.max_age),
            min_hits=max(1, opts.min_hits),
            bbox_ema_alpha=_clamp01(opts.bbox_ema_alpha),
        )
        self._next_track_id = 1
        self._tracks: list[_TrackState] = []

    def reset(self) -> None:
        """Forget all tracks and restart ids from 1."""
        self._tracks.clear()
        self._next_track_id = 1

    def _class_match(self, state: _TrackState, det: Detection) -> bool:
        if not self.options.class_aware:
            return True
        if state.pub.class_id < 0 or det.class_id < 0:
            return True
        return state.pub.class_id == det.class_id

    def update(self, dets: Sequence[Detection], ts: TimestampNs) -> list[Track]:
        """Feed one frame of detections and return the confirmed tracks."""
        opts = self.options
        unmatched_tracks = list(self._tracks)
        unmatched_dets: list[Detection] = []

        for det in dets:
            if not det.bbox_img.valid():
                continue

            best_iou = -1.0
            best: Optional[_TrackState] = None
            for state in unmatched_tracks:
                if not state.pub.bbox_img.valid() or not self._class_match(state, det):
                    continue
                v = iou(state.pub.bbox_img, det.bbox_img)
                if v > best_iou:
                    best_iou, best = v, state

            if best is None or best_iou < opts.iou_threshold:
                unmatched_dets.append(det)
                continue

            pub = best.pub
            pub.bbox_img = smooth_bbox(pub.bbox_img, det.bbox_img, opts.bbox_ema_alpha)
            pub.ts_ns = ts
            pub.class_id = det.class_id
            pub.score = det.score
            pub.age += 1
            pub.lost = 0
            best.hit_count += 1
            if best.hit_count >= opts.min_hits:
                best.confirmed = True
            unmatched_tracks.remove(best)

        for state in unmatched_tracks:
            state.pub.lost += 1
            state.pub.age += 1

        for det in unmatched_dets:
            track = Track(
                ts_ns=ts,
                track_id=self._next_track_id,
                bbox_img=dataclasses.replace(det.bbox_img),
                class_id=det.class_id,
                score=det.score,
                age=1,
                lost=0,
            )
            self._next_track_id += 1
            self._tracks.append(
                _TrackState(pub=track, hit_count=1, confirmed=opts.min_hits <= 1)
            )

        self._tracks = [s for s in self._tracks if s.pub.lost <= opts.max_age]
        return [_copy_track(s.pub) for s in self._tracks if s.confirmed]


def create_iou_tracker(iou_threshold: float, max_age: int) -> IouTracker:
    """Build a tracker with the given threshold and age and default other options."""
    return IouTracker(TrackerOptions(iou_threshold=iou_threshold, max_age=max_age))