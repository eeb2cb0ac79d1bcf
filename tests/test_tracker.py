import pytest

from trafficmon.tracker import (
    IouTracker,
    TrackerOptions,
    create_iou_tracker,
    iou,
    smooth_bbox,
)
from trafficmon.types import BBox, Detection


def _det(x, y, w=20.0, h=20.0, class_id=0, score=0.9):
    return Detection(ts_ns=0, bbox_img=BBox(x, y, w, h), class_id=class_id, score=score)


def _box_tuple(b):
    return (b.x, b.y, b.w, b.h)


def test_iou_identical_boxes_is_one():
    b = BBox(1.0, 2.0, 10.0, 5.0)
    assert iou(b, b) == pytest.approx(1.0)


def test_iou_disjoint_is_zero():
    assert iou(BBox(0, 0, 10, 10), BBox(20, 20, 5, 5)) == 0.0


def test_iou_half_overlap():
    assert iou(BBox(0, 0, 10, 10), BBox(5, 0, 10, 10)) == pytest.approx(1 / 3)


def test_iou_is_symmetric():
    a, b = BBox(0, 0, 12, 8), BBox(3, 2, 9, 11)
    assert iou(a, b) == pytest.approx(iou(b, a))


def test_iou_invalid_box_is_zero():
    assert iou(BBox(0, 0, 0, 10), BBox(0, 0, 10, 10)) == 0.0


def test_smooth_bbox_extreme_alphas():
    prev, cur = BBox(0, 0, 10, 10), BBox(4, 6, 12, 14)
    assert _box_tuple(smooth_bbox(prev, cur, 1.0)) == pytest.approx(_box_tuple(cur))
    assert _box_tuple(smooth_bbox(prev, cur, 0.0)) == pytest.approx(_box_tuple(prev))
    assert _box_tuple(smooth_bbox(prev, cur, 5.0)) == pytest.approx(_box_tuple(cur))


def test_smooth_bbox_invalid_prev_returns_cur():
    cur = BBox(4, 6, 12, 14)
    assert smooth_bbox(BBox(), cur, 0.3) == cur


def test_smooth_bbox_lies_between():
    prev, cur = BBox(0, 0, 10, 10), BBox(10, 10, 20, 20)
    out = smooth_bbox(prev, cur, 0.5)
    assert prev.x < out.x < cur.x
    assert prev.w < out.w < cur.w


def test_track_confirmed_after_min_hits():
    tracker = IouTracker()
    det = _det(10, 10)
    assert tracker.update([det], 100) == []
    tracks = tracker.update([det], 200)
    assert len(tracks) == 1
    t = tracks[0]
    assert t.track_id == 1
    assert t.age == 2
    assert t.lost == 0
    assert t.ts_ns == 200
    assert _box_tuple(t.bbox_img) == pytest.approx(_box_tuple(det.bbox_img))


def test_min_hits_one_reports_immediately():
    tracker = IouTracker(TrackerOptions(min_hits=1))
    tracks = tracker.update([_det(10, 10)], 5)
    assert [t.track_id for t in tracks] == [1]
    assert tracks[0].age == 1


def test_matched_box_is_smoothed():
    opts = TrackerOptions(min_hits=1, bbox_ema_alpha=0.7)
    tracker = IouTracker(opts)
    first = _det(10, 10)
    second = _det(12, 11)
    tracker.update([first], 1)
    tracks = tracker.update([second], 2)
    expected = smooth_bbox(first.bbox_img, second.bbox_img, 0.7)
    assert len(tracks) == 1
    assert _box_tuple(tracks[0].bbox_img) == pytest.approx(_box_tuple(expected))


def test_lost_track_purged_after_max_age():
    tracker = IouTracker(TrackerOptions(min_hits=1, max_age=1))
    tracker.update([_det(10, 10)], 1)
    tracks = tracker.update([], 2)
    assert len(tracks) == 1
    assert tracks[0].lost == 1
    assert tracker.update([], 3) == []
    tracks = tracker.update([_det(10, 10)], 4)
    assert [t.track_id for t in tracks] == [2]


def test_far_detection_starts_new_track():
    tracker = IouTracker(TrackerOptions(min_hits=1))
    tracker.update([_det(0, 0)], 1)
    tracks = tracker.update([_det(500, 500)], 2)
    assert sorted(t.track_id for t in tracks) == [1, 2]


def test_class_aware_blocks_matching():
    tracker = IouTracker(TrackerOptions(min_hits=1, class_aware=True))
    tracker.update([_det(10, 10, class_id=0)], 1)
    tracks = tracker.update([_det(10, 10, class_id=1)], 2)
    assert sorted(t.track_id for t in tracks) == [1, 2]


def test_class_unaware_matches_across_classes():
    tracker = IouTracker(TrackerOptions(min_hits=1, class_aware=False))
    tracker.update([_det(10, 10, class_id=0)], 1)
    tracks = tracker.update([_det(10, 10, class_id=1)], 2)
    assert [t.track_id for t in tracks] == [1]
    assert tracks[0].class_id == 1


def test_unknown_class_matches_anything():
    tracker = IouTracker(TrackerOptions(min_hits=1))
    tracker.update([_det(10, 10, class_id=-1)], 1)
    tracks = tracker.update([_det(10, 10, class_id=3)], 2)
    assert [t.track_id for t in tracks] == [1]


def test_invalid_detection_ignored():
    tracker = IouTracker(TrackerOptions(min_hits=1))
    assert tracker.update([_det(10, 10, w=0.0)], 1) == []


def test_reset_restarts_ids():
    tracker = IouTracker(TrackerOptions(min_hits=1))
    tracker.update([_det(10, 10), _det(300, 300)], 1)
    tracker.reset()
    tracks = tracker.update([_det(600, 600)], 2)
    assert [t.track_id for t in tracks] == [1]


def test_returned_tracks_are_copies():
    tracker = IouTracker(TrackerOptions(min_hits=1, max_age=5))
    tracks = tracker.update([_det(10, 10)], 1)
    tracks[0].bbox_img.x = 999.0
    tracks[0].lost = 50
    again = tracker.update([], 2)
    assert again[0].bbox_img.x == pytest.approx(10.0)
    assert again[0].lost == 1


def test_create_iou_tracker_clamps_options():
    tracker = create_iou_tracker(2.0, -5)
    assert tracker.options.iou_threshold == 1.0
    assert tracker.options.max_age == 0
    assert tracker.options.min_hits == TrackerOptions().min_hits


def test_options_normalised():
    tracker = IouTracker(TrackerOptions(iou_threshold=-1.0, min_hits=0, bbox_ema_alpha=3.0))
    assert tracker.options.iou_threshold == 0.0
    assert tracker.options.min_hits == 1
    assert tracker.options.bbox_ema_alpha == 1.0