"""Light frame preprocessing: optional resize and grayscale conversion."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

# Luma weights applied to the B, G and R channels.
_GRAY_WEIGHTS = np.array([0.114, 0.587, 0.299], dtype=np.float64)


@dataclass
class FramePreprocConfig:
    enable_resize: bool = False  # produce a resized frame
    out_w: int = 1280  # resize width in pixels
    out_h: int = 720  # resize height in pixels
    make_gray: bool = False  # produce a grayscale frame


def _to_dtype(values: np.ndarray, dtype: np.dtype) -> np.ndarray:
    if np.issubdtype(dtype, np.integer):
        info = np.iinfo(dtype)
        return np.clip(np.rint(values), info.min, info.max).astype(dtype)
    return values.astype(dtype)


def _axis_coords(src_len: int, dst_len: int) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    pos = (np.arange(dst_len, dtype=np.float64) + 0.5) * (src_len / dst_len) - 0.5
    pos = np.clip(pos, 0.0, src_len - 1.0)
    lo = np.floor(pos).astype(np.int64)
    hi = np.minimum(lo + 1, src_len - 1)
    return lo, hi, pos - lo


def _resize_linear(src: np.ndarray, out_w: int, out_h: int) -> np.ndarray:
    if out_w <= 0 or out_h <= 0:
        raise ValueError(f"resize target must be positive, got {out_w}x{out_h}")
    src_h, src_w = src.shape[0], src.shape[1]
    x0, x1, fx = _axis_coords(src_w, out_w)
    y0, y1, fy = _axis_coords(src_h, out_h)

    extra = (1,) * (src.ndim - 2)
    fx = fx.reshape((1, out_w) + extra)
    fy = fy.reshape((out_h, 1) + extra)
    data = src.astype(np.float64)

    top = data[y0][:, x0] * (1.0 - fx) + data[y0][:, x1] * fx
    bottom = data[y1][:, x0] * (1.0 - fx) + data[y1][:, x1] * fx
    return _to_dtype(top * (1.0 - fy) + bottom * fy, src.dtype)


def _bgr_to_gray(bgr: np.ndarray) -> np.ndarray:
    if bgr.ndim != 3 or bgr.shape[2] not in (3, 4):
        raise ValueError("grayscale conversion needs a 3- or 4-channel BGR image")
    gray = bgr[..., :3].astype(np.float64) @ _GRAY_WEIGHTS
    return _to_dtype(gray, bgr.dtype)


class FramePreproc:
    """Prepares frames for later stages without any high-level logic."""

    def __init__(self, config: Optional[FramePreprocConfig] = None):
        self.config = config if config is not None else FramePreprocConfig()

    def run(self, frame: Any) -> tuple[np.ndarray, Optional[np.ndarray]]:
        """Return ``(bgr, gray)``.

        ``bgr`` is the resized frame when resizing is enabled, otherwise the
        input itself (shared, not copied). ``gray`` is None unless
        ``make_gray`` is set. An empty input gives an empty frame and no gray.
        """
        src = None if frame is None else np.asarray(frame)
        if src is None or src.size == 0:
            return np.empty((0, 0), dtype=np.uint8), None

        cfg = self.config
        bgr = _resize_linear(src, cfg.out_w, cfg.out_h) if cfg.enable_resize else src
        gray = _bgr_to_gray(bgr) if cfg.make_gray else None
        return bgr, gray