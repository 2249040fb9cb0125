from __future__ import annotations

from decimal import Context, Decimal, localcontext
import math
from typing import Callable, TypeAlias

from .errors import TransformError
from .tiles import WorldRect
from .world import to_world, world_context


Transform: TypeAlias = Callable[[Decimal], float]


def get_transform(
    src_points: tuple[Decimal, Decimal],
    dst_points: tuple[Decimal, Decimal],
    *,
    context: Context | None = None,
) -> Transform:
    """Returns the 1-D affine transformation that maps `src_points` to `dst_points`.

    Coefficients are solved exactly in decimal arithmetic; only the final pixel
    value is converted to a float.
    """
    ctx = context or world_context()
    x0, x1 = (to_world(p) for p in src_points)
    y0, y1 = (to_world(p) for p in dst_points)
    if x0 == x1:
        raise ValueError("source points must be distinct")
    if y0 == y1:
        raise ValueError("destination points must be distinct")
    with localcontext(ctx):
        d = x1 - x0
        a = y1 - y0
        b = x1 * y0 - x0 * y1

    def transform(x: Decimal) -> float:
        with localcontext(ctx):
            out = float((a * to_world(x) + b) / d)
        if not math.isfinite(out):
            raise TransformError(f"transform of {x} produced non-finite pixel value {out}")
        return out

    return transform


def tile_transforms(rect: WorldRect, tile_size: int, *, context: Context | None = None) -> tuple[Transform, Transform]:
    """Returns the (x, y) transforms from a tile's world rectangle to its CSS pixels.

    Both axes are inset by half a pixel so lines on tile boundaries land on
    pixel centres. The y axis is inverted.
    """
    lo = Decimal("0.5")
    hi = Decimal(tile_size) + lo
    tx = get_transform((rect.x0, rect.x1), (lo, hi), context=context)
    ty = get_transform((rect.y0, rect.y1), (hi, lo), context=context)
    return tx, ty
