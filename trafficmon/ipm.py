"""Inverse perspective mapping: configuration loading and image/point warping.

Image coordinates are source-frame pixels; IPM coordinates are top-view pixels.
A distance in IPM pixels times ``meters_per_pixel`` gives metres.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

import numpy as np
import yaml

from trafficmon.types import Point2f

_FLT_EPSILON = float(np.finfo(np.float32).eps)
_MIN_DET = 1e-12


class IpmConfigError(ValueError):
    """Raised when an IPM configuration cannot be loaded or is invalid."""


def _identity() -> np.ndarray:
    return np.eye(3, dtype=np.float32)


@dataclass
class IpmConfig:
    """Homography (image -> IPM), metric scale and output size (width, height)."""

    H: np.ndarray = field(default_factory=_identity)
    meters_per_pixel: float = 0.05
    ipm_size: tuple[int, int] = (640, 480)

    def __post_init__(self) -> None:
        self.H = np.array(self.H, dtype=np.float32)
        self.ipm_size = (int(self.ipm_size[0]), int(self.ipm_size[1]))


def validate_ipm_config(cfg: IpmConfig) -> None:
    """Raise :class:`IpmConfigError` unless the scale, size and homography are usable."""
    mpp = cfg.meters_per_pixel
    if not (mpp > 0.0) or not np.isfinite(mpp):
        raise IpmConfigError("meters_per_pixel must be finite and > 0.")

    width, height = cfg.ipm_size
    if width <= 0 or height <= 0:
        raise IpmConfigError("ipm_size must have positive width/height.")

    h = np.asarray(cfg.H, dtype=np.float32)
    if h.shape != (3, 3):
        raise IpmConfigError("H must be a 3x3 matrix.")
    if not np.all(np.isfinite(h)):
        raise IpmConfigError("H contains NaN or Inf.")

    det = float(np.linalg.det(h.astype(np.float64)))
    if not np.isfinite(det) or abs(det) < _MIN_DET:
        raise IpmConfigError(
            "H determinant is too small or not finite (singular/unstable)."
        )


class _Loader(yaml.SafeLoader):
    """Safe loader that understands matrices written with the ``!!opencv-matrix`` tag."""


def _construct_opencv_matrix(loader: yaml.SafeLoader, node: yaml.Node) -> dict:
    return loader.construct_mapping(node, deep=True)  # type: ignore[arg-type]


_Loader.add_constructor("tag:yaml.org,2002:opencv-matrix", _construct_opencv_matrix)


def _strip_opencv_header(text: str) -> str:
    # Files written by OpenCV begin with "%YAML:1.0", which is not a valid YAML directive.
    return "\n".join(
        line for line in text.splitlines() if not line.startswith("%YAML:")
    )


def _parse_matrix(node: Any) -> np.ndarray:
    try:
        if isinstance(node, dict):
            data = node.get("data")
            if data is None:
                raise IpmConfigError("H must be a 3x3 matrix.")
            arr = np.asarray(data, dtype=np.float64)
            rows, cols = node.get("rows"), node.get("cols")
            if isinstance(rows, int) and isinstance(cols, int) and arr.size == rows * cols:
                arr = arr.reshape(rows, cols)
        else:
            arr = np.asarray(node, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise IpmConfigError("H must be a 3x3 matrix.") from exc
    if arr.shape != (3, 3):
        raise IpmConfigError("H must be a 3x3 matrix.")
    return arr.astype(np.float32)


def _parse_size(node: Any) -> tuple[int, int]:
    try:
        if isinstance(node, (list, tuple)) and len(node) >= 2:
            return int(node[0]), int(node[1])
        if isinstance(node, dict):
            if node.get("width") is None or node.get("height") is None:
                raise IpmConfigError("ipm_size map must contain width and height.")
            return int(node["width"]), int(node["height"])
    except (TypeError, ValueError) as exc:
        raise IpmConfigError(
            "ipm_size must be a sequence [w,h] or map {width,height}."
        ) from exc
    raise IpmConfigError("ipm_size must be a sequence [w,h] or map {width,height}.")


def load_ipm_config(yaml_path: Union[str, Path]) -> IpmConfig:
    """Load and validate an IPM configuration from a YAML file.

    Expected keys: ``H`` (3x3, plain nested list or ``!!opencv-matrix``),
    ``meters_per_pixel`` and ``ipm_size`` as ``[w, h]`` or ``{width, height}``.
    """
    try:
        text = Path(yaml_path).read_text(encoding="utf-8")
    except OSError as exc:
        raise IpmConfigError(f"Failed to open YAML: {yaml_path}") from exc

    try:
        doc = yaml.load(_strip_opencv_header(text), Loader=_Loader)
    except yaml.YAMLError as exc:
        raise IpmConfigError(f"Failed to parse YAML: {yaml_path}") from exc
    if not isinstance(doc, dict):
        doc = {}

    if doc.get("H") is None:
        raise IpmConfigError("Missing key 'H' in YAML.")
    h = _parse_matrix(doc["H"])

    if doc.get("meters_per_pixel") is None:
        raise IpmConfigError("Missing key 'meters_per_pixel' in YAML.")
    try:
        mpp = float(doc["meters_per_pixel"])
    except (TypeError, ValueError):
        mpp = 0.0

    if doc.get("ipm_size") is None:
        raise IpmConfigError("Missing key 'ipm_size' in YAML.")
    size = _parse_size(doc["ipm_size"])

    cfg = IpmConfig(H=h, meters_per_pixel=mpp, ipm_size=size)
    try:
        validate_ipm_config(cfg)
    except IpmConfigError as exc:
        raise IpmConfigError(f"Invalid IPM config: {exc}") from exc
    return cfg


class IpmWarper:
    """Applies an IPM homography to whole frames and to single points."""

    def __init__(self, cfg: IpmConfig):
        self.config = cfg
        self._h = np.asarray(cfg.H, dtype=np.float64)

    def meters_per_pixel(self) -> float:
        return self.config.meters_per_pixel

    def ipm_size(self) -> tuple[int, int]:
        """Output size as (width, height) in pixels."""
        return self.config.ipm_size

    def warp_point(self, point: Point2f) -> Point2f:
        """Map an image-pixel point to IPM pixels; a degenerate projection gives (0, 0)."""
        x, y = float(point[0]), float(point[1])
        h = self._h
        w = h[2, 0] * x + h[2, 1] * y + h[2, 2]
        if abs(w) <= _FLT_EPSILON:
            return (0.0, 0.0)
        return (
            float((h[0, 0] * x + h[0, 1] * y + h[0, 2]) / w),
            float((h[1, 0] * x + h[1, 1] * y + h[1, 2]) / w),
        )

    def warp(self, frame: Any) -> np.ndarray:
        """Warp a frame into the top view of size ``ipm_size``, bilinear, black outside."""
        if frame is None:
            return np.empty((0, 0), dtype=np.uint8)
        src = np.asarray(frame)
        if src.size == 0:
            return np.empty((0, 0) + src.shape[2:], dtype=src.dtype)

        width, height = self.config.ipm_size
        out_shape = (height, width) + src.shape[2:]
        try:
            h_inv = np.linalg.inv(self._h)
        except np.linalg.LinAlgError:
            return np.zeros(out_shape, dtype=src.dtype)

        src_h, src_w = src.shape[0], src.shape[1]
        xs, ys = np.meshgrid(
            np.arange(width, dtype=np.float64), np.arange(height, dtype=np.float64)
        )
        num_x = h_inv[0, 0] * xs + h_inv[0, 1] * ys + h_inv[0, 2]
        num_y = h_inv[1, 0] * xs + h_inv[1, 1] * ys + h_inv[1, 2]
        den = h_inv[2, 0] * xs + h_inv[2, 1] * ys + h_inv[2, 2]

        outside = -2.0
        nonzero = den != 0
        sx = np.full_like(xs, outside)
        sy = np.full_like(ys, outside)
        np.divide(num_x, den, out=sx, where=nonzero)
        np.divide(num_y, den, out=sy, where=nonzero)
        sx = np.nan_to_num(sx, nan=outside, posinf=outside, neginf=outside)
        sy = np.nan_to_num(sy, nan=outside, posinf=outside, neginf=outside)
        sx = np.clip(sx, outside, src_w + 1.0)
        sy = np.clip(sy, outside, src_h + 1.0)

        x0 = np.floor(sx).astype(np.int64)
        y0 = np.floor(sy).astype(np.int64)
        fx = sx - x0
        fy = sy - y0
        if src.ndim == 3:
            fx = fx[..., None]
            fy = fy[..., None]

        def sample(xi: np.ndarray, yi: np.ndarray) -> np.ndarray:
            inside = (xi >= 0) & (xi < src_w) & (yi >= 0) & (yi < src_h)
            vals = src[np.clip(yi, 0, src_h - 1), np.clip(xi, 0, src_w - 1)].astype(
                np.float64
            )
            vals[~inside] = 0.0
            return vals

        result = (
            (1.0 - fx) * (1.0 - fy) * sample(x0, y0)
            + fx * (1.0 - fy) * sample(x0 + 1, y0)
            + (1.0 - fx) * fy * sample(x0, y0 + 1)
            + fx * fy * sample(x0 + 1, y0 + 1)
        )

        if np.issubdtype(src.dtype, np.integer):
            info = np.iinfo(src.dtype)
            return np.clip(np.rint(result), info.min, info.max).astype(src.dtype)
        return result.astype(src.dtype)