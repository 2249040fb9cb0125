from __future__ import annotations

from dataclasses import dataclass
from decimal import Context, Decimal
from typing import Literal

from .config import GridConfig
from .grid_renderer import iter_grid_values, pixel_coordinate
from .host import Rect
from .intervals import GridInterval, grid_intervals
from .raster.draw_text import Font, TextMetrics, draw_text, measure_text
from .raster.surface import TileSurface
from .tiles import TileCoords, TileRange, WorldRect
from .transform import Transform, tile_transforms
from .world import ZERO, world_context


MINUS_SIGN = "−"
# Decimal exponents at or beyond which tick values switch to exponential notation.
EXPONENTIAL_AT = 5
ORIGIN_TILE = (-1, 0)

LabelAxis = Literal["x", "y", "origin"]


@dataclass(frozen=True)
class LabelPlacement:
    text: str
    axis: LabelAxis
    # Unclamped and clamped left-baseline origins, in tile CSS pixels.
    anchor: tuple[float, float]
    position: tuple[float, float]
    # Ink box of the clamped label in screen coordinates.
    bounds: Rect
    muted: bool = False

    @property
    def shifted(self) -> bool:
        return self.anchor != self.position


def format_tick(value: Decimal, *, context: Context | None = None) -> str:
    if value.is_zero():
        return "0"
    v = value.normalize(context or world_context())
    exp = v.adjusted()
    if exp >= EXPONENTIAL_AT or exp <= -EXPONENTIAL_AT:
        sign, digits, _ = v.as_tuple()
        coeff = "".join(str(d) for d in digits)
        if len(coeff) > 1:
            coeff = coeff[0] + "." + coeff[1:]
        text = f"{'-' if sign else ''}{coeff}e{'+' if exp >= 0 else '-'}{abs(exp)}"
    else:
        text = format(v, "f")
    return text.replace("-", MINUS_SIGN)


def is_origin_tile(coords: TileCoords) -> bool:
    return (coords.x, coords.y) == ORIGIN_TILE


def owns_x_labels(coords: TileCoords, tile_range: TileRange) -> bool:
    """Whether the tile draws x tick labels.

    Row 0 hangs just below the x axis. When the axis is scrolled out of view,
    the two rows at the nearest edge of the visible range take over.
    """
    lo, hi = tile_range.min.y, tile_range.max.y
    return (
        coords.y == 0
        or (hi <= 0 and coords.y in (hi, hi - 1))
        or (lo >= 0 and coords.y in (lo, lo + 1))
    )


def owns_y_labels(coords: TileCoords, tile_range: TileRange) -> bool:
    lo, hi = tile_range.min.x, tile_range.max.x
    return (
        coords.x == -1
        or (hi <= -1 and coords.x in (hi, hi - 1))
        or (lo >= -1 and coords.x in (lo, lo + 1))
    )


def label_bounds(metrics: TextMetrics, x: float, y: float, tile_rect: Rect) -> Rect:
    return Rect(
        tile_rect.x + x - metrics.left,
        tile_rect.y + y - metrics.ascent,
        metrics.width,
        metrics.height,
    )


def clamp_label(
    text: str,
    axis: LabelAxis,
    metrics: TextMetrics,
    anchor: tuple[float, float],
    *,
    tile_rect: Rect,
    container: Rect,
    padding: float,
) -> LabelPlacement:
    """Shifts a label the minimum amount to keep it inside the padded container.

    The label is muted when the shift is perpendicular to its axis, which means
    the axis line itself is off-screen.
    """
    x, y = anchor
    box = label_bounds(metrics, x, y, tile_rect)
    dx = max(0.0, container.left + padding - box.left) + min(0.0, container.right - padding - box.right)
    dy = max(0.0, container.top + padding - box.top) + min(0.0, container.bottom - padding - box.bottom)
    position = (x + dx, y + dy)
    if axis == "x":
        muted = position[1] != y
    elif axis == "y":
        muted = position[0] != x
    else:
        muted = False
    return LabelPlacement(
        text=text,
        axis=axis,
        anchor=anchor,
        position=position,
        bounds=Rect(box.x + dx, box.y + dy, box.width, box.height),
        muted=muted,
    )


def x_tick_placements(
    rect: WorldRect,
    interval: GridInterval,
    tx: Transform,
    ty: Transform,
    *,
    font: Font,
    tile_rect: Rect,
    container: Rect,
    config: GridConfig,
) -> list[LabelPlacement]:
    scale = config.device_pixel_ratio
    ctx = config.world_context()
    cy = pixel_coordinate(ty, ZERO)
    out: list[LabelPlacement] = []
    for i, x in iter_grid_values(rect.x0, rect.x1, interval, context=ctx):
        if i.is_zero():
            continue
        cx = pixel_coordinate(tx, x)
        wx = tile_rect.x + cx
        if wx < container.left or wx > container.right:
            continue
        text = format_tick(x, context=ctx)
        m = measure_text(text, font, scale=scale)
        anchor = (cx - (m.left + m.right) / 2.0, cy + m.ascent + config.label_offset)
        out.append(
            clamp_label(text, "x", m, anchor, tile_rect=tile_rect, container=container, padding=config.label_padding)
        )
    return out


def y_tick_placements(
    rect: WorldRect,
    interval: GridInterval,
    tx: Transform,
    ty: Transform,
    *,
    font: Font,
    tile_rect: Rect,
    container: Rect,
    config: GridConfig,
) -> list[LabelPlacement]:
    scale = config.device_pixel_ratio
    ctx = config.world_context()
    cx = pixel_coordinate(tx, ZERO)
    out: list[LabelPlacement] = []
    for i, y in iter_grid_values(rect.y0, rect.y1, interval, context=ctx):
        if i.is_zero():
            continue
        cy = pixel_coordinate(ty, y)
        wy = tile_rect.y + cy
        if wy < container.top or wy > container.bottom:
            continue
        text = format_tick(y, context=ctx)
        m = measure_text(text, font, scale=scale)
        anchor = (cx - m.right - config.label_offset, cy + (m.ascent - m.descent) / 2.0)
        out.append(
            clamp_label(text, "y", m, anchor, tile_rect=tile_rect, container=container, padding=config.label_padding)
        )
    return out


def origin_placement(tx: Transform, ty: Transform, *, font: Font, tile_rect: Rect, config: GridConfig) -> LabelPlacement:
    cx = pixel_coordinate(tx, ZERO)
    cy = pixel_coordinate(ty, ZERO)
    m = measure_text("0", font, scale=config.device_pixel_ratio)
    anchor = (cx - m.right - config.label_offset, cy + m.ascent + config.label_offset)
    return LabelPlacement(
        text="0",
        axis="origin",
        anchor=anchor,
        position=anchor,
        bounds=label_bounds(m, anchor[0], anchor[1], tile_rect),
    )


def layout_label_tile(
    coords: TileCoords,
    rect: WorldRect,
    tile_range: TileRange,
    *,
    container: Rect,
    tile_rect: Rect,
    font: Font,
    config: GridConfig,
) -> list[LabelPlacement]:
    """Computes every label the tile owns, without drawing."""
    ctx = config.world_context()
    tx, ty = tile_transforms(rect, config.tile_size, context=ctx)
    major, _ = grid_intervals(rect.width_per_pixel, max_density=config.max_density)
    placements: list[LabelPlacement] = []
    if is_origin_tile(coords):
        placements.append(origin_placement(tx, ty, font=font, tile_rect=tile_rect, config=config))
    kwargs = dict(font=font, tile_rect=tile_rect, container=container, config=config)
    if owns_x_labels(coords, tile_range):
        placements.extend(x_tick_placements(rect, major, tx, ty, **kwargs))
    if owns_y_labels(coords, tile_range):
        placements.extend(y_tick_placements(rect, major, tx, ty, **kwargs))
    return placements


def render_label_tile(
    surface: TileSurface,
    coords: TileCoords,
    rect: WorldRect,
    tile_range: TileRange,
    *,
    container: Rect,
    tile_rect: Rect,
    font: Font,
    config: GridConfig,
) -> list[LabelPlacement]:
    placements = layout_label_tile(
        coords,
        rect,
        tile_range,
        container=container,
        tile_rect=tile_rect,
        font=font,
        config=config,
    )
    surface.clear()
    for placement in placements:
        color = config.label_muted_color if placement.muted else config.label_color
        x, y = placement.position
        draw_text(
            surface.pixels,
            x,
            y,
            placement.text,
            color,
            font=font,
            scale=surface.device_pixel_ratio,
            outline_color=config.label_outline_color,
            outline_width=config.label_outline_width,
        )
    return placements
