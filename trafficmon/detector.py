"""Detector that returns fixed placeholder boxes, for exercising the pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from trafficmon.clock import now_ns
from trafficmon.mathutil import clamp
from trafficmon.types import BBox, Detection

_MIN_BOX_PX = 8.0


@dataclass
class DetectorParams:
    num_boxes: int = 2  # 1 or 2; other values are clamped
    class_id: int = 0
    score: float = 0.9
    box_w_ratio: float = 0.25  # box width as a fraction of the frame width
    box_h_ratio: float = 0.20  # box height as a fraction of the frame height


class DetectorStub:
    """Produces one or two boxes at fixed positions relative to the frame."""

    def __init__(self, params: Optional[DetectorParams] = None):
        self.params = params if params is not None else DetectorParams()

    def infer(self, frame: Any) -> list[Detection]:
        """Return detections for an image array of shape (rows, cols, ...)."""
        if frame is None or getattr(frame, "size", 0) == 0:
            return []

        height, width = int(frame.shape[0]), int(frame.shape[1])
        p = self.params
        bw = max(_MIN_BOX_PX, p.box_w_ratio * width)
        bh = max(_MIN_BOX_PX, p.box_h_ratio * height)

        def make_box(cx: float, cy: float) -> BBox:
            x = clamp(cx - bw * 0.5, 0.0, max(0.0, width - bw))
            y = clamp(cy - bh * 0.5, 0.0, max(0.0, height - bh))
            return BBox(x, y, bw, bh)

        count = clamp(p.num_boxes, 1, 2)
        ts = now_ns()

        out = [
            Detection(
                ts_ns=ts,
                bbox_img=make_box(0.5 * width, 0.55 * height),
                class_id=p.class_id,
                score=p.score,
            )
        ]
        if count == 2:
            out.append(
                Detection(
                    ts_ns=ts,
                    bbox_img=make_box(0.65 * width, 0.45 * height),
                    class_id=p.class_id,
                    score=max(0.0, p.score - 0.1),
                )
            )
        return out


def create_detector_stub() -> DetectorStub:
    """Build a stub detector with default parameters."""
    return DetectorStub()