from __future__ import annotations

from decimal import Context, Decimal, localcontext
import math
from typing import Iterator

from .config import GridConfig
from .errors import TransformError
from .intervals import GridInterval, grid_intervals
from .raster.canvas import RGBA, stroke_horizontal, stroke_vertical
from .raster.surface import TileSurface
from .tiles import WorldRect
from .transform import Transform, tile_transforms
from .world import ONE, ZERO, ceil_int, floor_int, world_context


def grid_line_indices(
    start: Decimal,
    end: Decimal,
    interval: GridInterval,
    *,
    context: Context | None = None,
) -> tuple[Decimal, Decimal]:
    """Returns the inclusive index range of grid lines to draw over `[start, end]`.

    One extra index on each side keeps lines straddling the tile edge.
    """
    ctx = context or world_context()
    with localcontext(ctx):
        lo = ceil_int(start * interval.inverse) - ONE
        hi = floor_int(end * interval.inverse) + ONE
    return lo, hi


def iter_grid_values(
    start: Decimal,
    end: Decimal,
    interval: GridInterval,
    *,
    context: Context | None = None,
) -> Iterator[tuple[Decimal, Decimal]]:
    """Yields `(index, world value)` for every grid line over `[start, end]`."""
    ctx = context or world_context()
    lo, hi = grid_line_indices(start, end, interval, context=ctx)
    i = lo
    while i <= hi:
        with localcontext(ctx):
            value = i * interval.value
        yield i, value
        i = ctx.add(i, ONE)


def pixel_coordinate(transform: Transform, value: Decimal) -> float:
    out = transform(value)
    if not math.isfinite(out):
        raise TransformError(f"non-finite pixel coordinate for {value}")
    return out


def draw_grid(
    surface: TileSurface,
    rect: WorldRect,
    interval: GridInterval,
    tx: Transform,
    ty: Transform,
    color: RGBA,
    *,
    context: Context | None = None,
) -> int:
    """Draws every line of `interval` crossing the tile; returns the number of lines."""
    scale = surface.device_pixel_ratio
    count = 0
    for _, x in iter_grid_values(rect.x0, rect.x1, interval, context=context):
        stroke_vertical(surface.pixels, pixel_coordinate(tx, x), color, scale=scale)
        count += 1
    for _, y in iter_grid_values(rect.y0, rect.y1, interval, context=context):
        stroke_horizontal(surface.pixels, pixel_coordinate(ty, y), color, scale=scale)
        count += 1
    return count


def draw_axes(surface: TileSurface, tx: Transform, ty: Transform, color: RGBA) -> None:
    scale = surface.device_pixel_ratio
    stroke_vertical(surface.pixels, pixel_coordinate(tx, ZERO), color, scale=scale)
    stroke_horizontal(surface.pixels, pixel_coordinate(ty, ZERO), color, scale=scale)


def render_grid_tile(surface: TileSurface, rect: WorldRect, config: GridConfig) -> tuple[GridInterval, GridInterval]:
    """Paints background, minor lines, major lines and axes, in that order.

    Returns the (major, minor) intervals used.
    """
    ctx = config.world_context()
    tx, ty = tile_transforms(rect, config.tile_size, context=ctx)
    major, minor = grid_intervals(rect.width_per_pixel, max_density=config.max_density)

    surface.clear(config.background_color)
    draw_grid(surface, rect, minor, tx, ty, config.minor_color, context=ctx)
    draw_grid(surface, rect, major, tx, ty, config.major_color, context=ctx)
    draw_axes(surface, tx, ty, config.axis_color)
    return major, minor
