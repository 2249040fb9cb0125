from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from PIL import Image

from .canvas import RGBA, fill, new_canvas


@dataclass(eq=False)
class TileSurface:
    """Drawing surface of one tile: a device-resolution RGBA canvas."""

    size: int
    device_pixel_ratio: float = 1.0
    pixels: np.ndarray = field(init=False, repr=False)
    attached: bool = field(default=True, init=False)

    def __post_init__(self) -> None:
        if self.size <= 0:
            raise ValueError("size must be > 0")
        if self.device_pixel_ratio <= 0:
            raise ValueError("device_pixel_ratio must be > 0")
        side = max(1, int(round(self.size * self.device_pixel_ratio)))
        self.pixels = new_canvas(side, side, color=(0, 0, 0, 0))

    @property
    def device_size(self) -> int:
        return int(self.pixels.shape[0])

    def clear(self, color: RGBA = (0, 0, 0, 0)) -> None:
        fill(self.pixels, color)

    def detach(self) -> None:
        self.attached = False

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.pixels)
