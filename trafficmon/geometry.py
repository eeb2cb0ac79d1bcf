"""Pure geometric helpers for boxes and polygons."""

from __future__ import annotations

import dataclasses
from itertools import pairwise
from typing import Sequence

from trafficmon.types import BBox, Point2f

_SEGMENT_EPS = 1e-4


def bbox_footpoint(bbox: BBox) -> Point2f:
    """Bottom-centre of a box in image pixels: (x + w/2, y + h)."""
    return (bbox.cx(), bbox.y + bbox.h)


def bbox_clip(bbox: BBox, img_w: int, img_h: int) -> BBox:
    """Clip a box to [0, img_w] x [0, img_h]; a non-positive image size returns it unchanged."""
    if img_w <= 0 or img_h <= 0:
        return bbox
    x1 = min(max(bbox.x, 0.0), float(img_w))
    y1 = min(max(bbox.y, 0.0), float(img_h))
    x2 = min(max(bbox.x + bbox.w, 0.0), float(img_w))
    y2 = min(max(bbox.y + bbox.h, 0.0), float(img_h))
    return dataclasses.replace(
        bbox, x=x1, y=y1, w=max(0.0, x2 - x1), h=max(0.0, y2 - y1)
    )


def _cross(a: Point2f, b: Point2f, c: Point2f) -> float:
    return (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])


def _on_segment(a: Point2f, b: Point2f, p: Point2f, eps: float = _SEGMENT_EPS) -> bool:
    if abs(_cross(a, b, p)) > eps:
        return False
    return (
        min(a[0], b[0]) - eps <= p[0] <= max(a[0], b[0]) + eps
        and min(a[1], b[1]) - eps <= p[1] <= max(a[1], b[1]) + eps
    )


def point_in_polygon(
    poly: Sequence[Point2f], p: Point2f, include_boundary: bool = True
) -> bool:
    """Ray-casting point-in-polygon test; polygons with fewer than 3 vertices contain nothing."""
    vertices = [tuple(v) for v in poly]
    if len(vertices) < 3:
        return False
    px, py = p

    # Edges as (current, next) pairs, closing the ring.
    edges = list(pairwise(vertices + [vertices[0]]))

    if include_boundary and any(_on_segment(a, b, (px, py)) for a, b in edges):
        return True

    inside = False
    for (jx, jy), (ix, iy) in edges:
        if (iy > py) != (jy > py):
            x_cross = (jx - ix) * (py - iy) / ((jy - iy) + 1e-12) + ix
            if px < x_cross:
                inside = not inside
    return inside