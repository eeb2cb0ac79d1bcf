import numpy as np
import pytest

from trafficmon.types import (
    INVALID_TS,
    BBox,
    Detection,
    FramePacket,
    SpeedQuality,
    SpeedResult,
    Track,
    TrackFoot,
)


def test_bbox_valid_requires_positive_size():
    assert BBox(0, 0, 1, 1).valid() is True
    assert BBox(0, 0, 0, 5).valid() is False
    assert BBox(0, 0, 5, -1).valid() is False


def test_bbox_far_edges_from_origin():
    b = BBox(0, 0, 7, 9)
    assert b.x2() == 7
    assert b.y2() == 9


def test_bbox_center_is_midway():
    b = BBox(3, 5, 8, 6)
    assert b.cx() - b.x == pytest.approx(b.x2() - b.cx())
    assert b.cy() - b.y == pytest.approx(b.y2() - b.cy())
    assert b.x < b.cx() < b.x2()


def test_frame_packet_validity():
    assert FramePacket().valid() is False
    img = np.zeros((4, 4, 3), dtype=np.uint8)
    assert FramePacket(ts_ns=5, bgr=img).valid() is True
    assert FramePacket(bgr=img).valid() is False
    assert FramePacket(ts_ns=5, bgr=np.zeros((0, 0, 3))).valid() is False


def test_track_and_detection_defaults():
    t = Track()
    d = Detection()
    assert t.ts_ns == INVALID_TS
    assert t.track_id == -1
    assert t.bbox_img.valid() is False
    assert d.class_id == -1


def test_default_boxes_are_independent():
    a, b = Track(), Track()
    a.bbox_img.w = 10
    assert b.bbox_img.w == 0


def test_track_foot_zone_defaults_empty():
    f = TrackFoot()
    assert f.zone_id is None and f.lane_id is None


def test_speed_result_default_quality():
    assert SpeedResult().quality is SpeedQuality.OK
    assert SpeedQuality(5) is SpeedQuality.INVALID_INPUT