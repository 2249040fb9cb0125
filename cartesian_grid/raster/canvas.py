from __future__ import annotations

import math

import numpy as np


RGBA = tuple[int, int, int, int]


def new_canvas(width: int, height: int, color: RGBA = (0, 0, 0, 255)) -> np.ndarray:
    canvas = np.zeros((height, width, 4), dtype=np.uint8)
    fill(canvas, color)
    return canvas


def fill(dst: np.ndarray, color: RGBA) -> None:
    dst[:, :, 0] = color[0]
    dst[:, :, 1] = color[1]
    dst[:, :, 2] = color[2]
    dst[:, :, 3] = color[3]


def device_span(center: float, line_width: float, scale: float) -> tuple[int, int]:
    """Returns the device pixel rows/columns `[start, stop)` covered by a stroke.

    `center` and `line_width` are in CSS pixels; a 1 px line centred on `k + 0.5`
    covers exactly the device pixels of CSS pixel `k` at any scale.
    """
    start = int(math.floor((center - line_width / 2.0) * scale + 0.5))
    stop = int(math.floor((center + line_width / 2.0) * scale + 0.5))
    if stop <= start:
        stop = start + 1
    return start, stop


def draw_hline(dst: np.ndarray, x0: int, x1: int, y: int, color: RGBA) -> None:
    if y < 0 or y >= dst.shape[0]:
        return
    xa = max(0, min(x0, x1))
    xb = min(dst.shape[1] - 1, max(x0, x1))
    if xa > xb:
        return
    _blend(dst[y, xa : xb + 1], color)


def draw_vline(dst: np.ndarray, x: int, y0: int, y1: int, color: RGBA) -> None:
    if x < 0 or x >= dst.shape[1]:
        return
    ya = max(0, min(y0, y1))
    yb = min(dst.shape[0] - 1, max(y0, y1))
    if ya > yb:
        return
    _blend(dst[ya : yb + 1, x], color)


def stroke_vertical(dst: np.ndarray, cx: float, color: RGBA, *, scale: float, line_width: float = 1.0) -> None:
    """Strokes a full-height vertical line at CSS x coordinate `cx`."""
    start, stop = device_span(cx, line_width, scale)
    for x in range(start, stop):
        draw_vline(dst, x, 0, dst.shape[0] - 1, color)


def stroke_horizontal(dst: np.ndarray, cy: float, color: RGBA, *, scale: float, line_width: float = 1.0) -> None:
    """Strokes a full-width horizontal line at CSS y coordinate `cy`."""
    start, stop = device_span(cy, line_width, scale)
    for y in range(start, stop):
        draw_hline(dst, 0, dst.shape[1] - 1, y, color)


def _blend(segment: np.ndarray, color: RGBA) -> None:
    a = color[3] / 255.0
    inv = 1.0 - a
    segment[..., :3] = (np.asarray(color[0:3], dtype=np.float32) * a + segment[..., :3].astype(np.float32) * inv).astype(np.uint8)
    segment[..., 3] = np.maximum(segment[..., 3], color[3])
