from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import math

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .canvas import RGBA


Font = ImageFont.FreeTypeFont | ImageFont.ImageFont


@dataclass(frozen=True)
class TextMetrics:
    """Ink extents around the left-baseline origin, in CSS pixels."""

    left: float
    right: float
    ascent: float
    descent: float

    @property
    def width(self) -> float:
        return self.left + self.right

    @property
    def height(self) -> float:
        return self.ascent + self.descent


def measure_text(text: str, font: Font, *, scale: float = 1.0) -> TextMetrics:
    left, top, right, bottom = _baseline_bbox(text, font)
    return TextMetrics(
        left=-left / scale,
        right=right / scale,
        ascent=-top / scale,
        descent=bottom / scale,
    )


def draw_text(
    dst: np.ndarray,
    x: float,
    y: float,
    text: str,
    color: RGBA,
    *,
    font: Font,
    scale: float = 1.0,
    outline_color: RGBA | None = None,
    outline_width: float = 0.0,
) -> None:
    """Draws `text` with its left-baseline origin at CSS position (x, y).

    When `outline_color` is given, a round-joined outline of `outline_width`
    CSS pixels is painted beneath the fill.
    """
    if not text:
        return
    mask, left, top = _render_mask(text, font)
    ox = int(math.floor(x * scale + 0.5))
    oy = int(math.floor(y * scale + 0.5))
    if outline_color is not None and outline_width > 0:
        radius = max(1, int(round(outline_width * scale / 2.0)))
        outline = _dilate(mask, radius)
        _blend_mask(dst, ox + left - radius, oy + top - radius, outline, outline_color)
    _blend_mask(dst, ox + left, oy + top, mask, color)


def _baseline_bbox(text: str, font: Font) -> tuple[int, int, int, int]:
    if isinstance(font, ImageFont.FreeTypeFont):
        left, top, right, bottom = font.getbbox(text, anchor="ls")
        return math.floor(left), math.floor(top), math.ceil(right), math.ceil(bottom)
    # Bitmap fonts have no baseline anchor; treat the ink bottom as the baseline.
    left, top, right, bottom = font.getbbox(text)
    return math.floor(left), math.floor(top - bottom), math.ceil(right), 0


@lru_cache(maxsize=256)
def _render_mask(text: str, font: Font) -> tuple[np.ndarray, int, int]:
    left, top, right, bottom = _baseline_bbox(text, font)
    width = max(1, right - left)
    height = max(1, bottom - top)
    image = Image.new("L", (width, height), 0)
    draw = ImageDraw.Draw(image)
    if isinstance(font, ImageFont.FreeTypeFont):
        draw.text((-left, -top), text, fill=255, font=font, anchor="ls")
    else:
        raw_bottom = font.getbbox(text)[3]
        draw.text((-left, -top - raw_bottom), text, fill=255, font=font)
    mask = np.asarray(image, dtype=np.uint8)
    mask.setflags(write=False)
    return mask, left, top


def _dilate(mask: np.ndarray, radius: int) -> np.ndarray:
    h, w = mask.shape
    padded = np.zeros((h + 2 * radius, w + 2 * radius), dtype=np.uint8)
    for dy in range(-radius, radius + 1):
        for dx in range(-radius, radius + 1):
            if dx * dx + dy * dy > radius * radius:
                continue
            view = padded[radius + dy : radius + dy + h, radius + dx : radius + dx + w]
            np.maximum(view, mask, out=view)
    return padded


def _blend_mask(dst: np.ndarray, x: int, y: int, mask: np.ndarray, color: RGBA) -> None:
    h, w = mask.shape
    x0 = max(0, x)
    y0 = max(0, y)
    x1 = min(dst.shape[1], x + w)
    y1 = min(dst.shape[0], y + h)
    if x1 <= x0 or y1 <= y0:
        return

    sx0 = x0 - x
    sy0 = y0 - y
    cov = mask[sy0 : sy0 + (y1 - y0), sx0 : sx0 + (x1 - x0)].astype(np.float32) / 255.0
    src_alpha = (color[3] / 255.0) * cov
    if not np.any(src_alpha > 0):
        return

    patch = dst[y0:y1, x0:x1]
    dst_rgb = patch[:, :, :3].astype(np.float32)
    dst_alpha = patch[:, :, 3].astype(np.float32) / 255.0

    src_rgb = np.asarray(color[:3], dtype=np.float32).reshape(1, 1, 3)
    out_alpha = src_alpha + dst_alpha * (1.0 - src_alpha)
    out_rgb_num = src_rgb * src_alpha[:, :, None] + dst_rgb * dst_alpha[:, :, None] * (1.0 - src_alpha[:, :, None])
    safe_alpha = np.where(out_alpha > 1e-6, out_alpha, 1.0)
    out_rgb = out_rgb_num / safe_alpha[:, :, None]

    patch[:, :, :3] = np.clip(out_rgb, 0, 255).astype(np.uint8)
    patch[:, :, 3] = np.clip(out_alpha * 255.0, 0, 255).astype(np.uint8)
