import numpy as np
import pytest

from trafficmon.preproc import FramePreproc, FramePreprocConfig


def _frame(h=6, w=8):
    rng = np.random.default_rng(0)
    return rng.integers(0, 256, size=(h, w, 3), dtype=np.uint8)


def test_default_config_values():
    cfg = FramePreproc().config
    assert (cfg.enable_resize, cfg.out_w, cfg.out_h, cfg.make_gray) == (False, 1280, 720, False)


def test_empty_input_gives_empty_output():
    bgr, gray = FramePreproc(FramePreprocConfig(make_gray=True)).run(np.empty((0, 0, 3), np.uint8))
    assert bgr.size == 0
    assert gray is None


def test_none_input_gives_empty_output():
    bgr, gray = FramePreproc().run(None)
    assert bgr.size == 0
    assert gray is None


def test_no_resize_shares_input():
    frame = _frame()
    bgr, gray = FramePreproc().run(frame)
    assert bgr is frame
    assert gray is None


def test_resize_shape_and_dtype():
    frame = _frame()
    bgr, _ = FramePreproc(FramePreprocConfig(enable_resize=True, out_w=5, out_h=3)).run(frame)
    assert bgr.shape == (3, 5, 3)
    assert bgr.dtype == np.uint8


def test_resize_same_size_is_identity():
    frame = _frame()
    bgr, _ = FramePreproc(FramePreprocConfig(enable_resize=True, out_w=8, out_h=6)).run(frame)
    assert np.array_equal(bgr, frame)


def test_resize_constant_image_stays_constant():
    frame = np.full((10, 10, 3), 77, dtype=np.uint8)
    bgr, _ = FramePreproc(FramePreprocConfig(enable_resize=True, out_w=23, out_h=4)).run(frame)
    assert bgr.shape == (4, 23, 3)
    assert np.array_equal(bgr, np.full((4, 23, 3), 77, dtype=np.uint8))


def test_resize_values_within_source_range():
    frame = _frame()
    bgr, _ = FramePreproc(FramePreprocConfig(enable_resize=True, out_w=17, out_h=13)).run(frame)
    assert bgr.min() >= frame.min()
    assert bgr.max() <= frame.max()


def test_resize_non_positive_size_raises():
    with pytest.raises(ValueError):
        FramePreproc(FramePreprocConfig(enable_resize=True, out_w=0, out_h=3)).run(_frame())


def test_gray_shape_follows_output_frame():
    bgr, gray = FramePreproc(
        FramePreprocConfig(enable_resize=True, out_w=4, out_h=2, make_gray=True)
    ).run(_frame())
    assert gray.shape == bgr.shape[:2]
    assert gray.dtype == np.uint8


def test_gray_of_neutral_color_keeps_value():
    frame = np.full((3, 3, 3), 123, dtype=np.uint8)
    _, gray = FramePreproc(FramePreprocConfig(make_gray=True)).run(frame)
    assert gray.shape == (3, 3)
    assert np.array_equal(gray, np.full((3, 3), 123, dtype=np.uint8))


def test_gray_weights_green_most():
    frame = np.zeros((1, 3, 3), dtype=np.uint8)
    frame[0, 0] = (255, 0, 0)  # blue
    frame[0, 1] = (0, 255, 0)  # green
    frame[0, 2] = (0, 0, 255)  # red
    _, gray = FramePreproc(FramePreprocConfig(make_gray=True)).run(frame)
    blue, green, red = gray[0]
    assert blue < red < green


def test_gray_of_single_channel_raises():
    with pytest.raises(ValueError):
        FramePreproc(FramePreprocConfig(make_gray=True)).run(np.zeros((4, 4), np.uint8))