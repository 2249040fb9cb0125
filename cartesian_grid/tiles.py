from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Context, Decimal, localcontext
import logging
import math
from typing import Any, Iterator, Literal

from .raster.surface import TileSurface
from .world import pow2, world_context


LOGGER = logging.getLogger(__name__)

TileState = Literal["pending", "rendered"]


@dataclass(frozen=True)
class TileCoords:
    x: int
    y: int
    z: int


@dataclass(frozen=True)
class Point:
    x: int
    y: int


@dataclass(frozen=True)
class PixelBounds:
    min: Point
    max: Point


@dataclass(frozen=True)
class TileRange:
    min: Point
    max: Point

    def __contains__(self, coords: object) -> bool:
        if not isinstance(coords, TileCoords):
            return False
        return self.min.x <= coords.x <= self.max.x and self.min.y <= coords.y <= self.max.y


@dataclass(frozen=True)
class WorldRect:
    x0: Decimal
    y0: Decimal
    x1: Decimal
    y1: Decimal
    width_per_tile: Decimal
    tile_size: int

    @property
    def width_per_pixel(self) -> float:
        return float(self.width_per_tile) / self.tile_size


def world_rect(
    coords: TileCoords,
    *,
    base_zoom: int,
    tile_size: int,
    context: Context | None = None,
) -> WorldRect:
    """Returns the world rectangle covered by a tile.

    Tile rows grow downward on screen while world y grows upward, so row `y`
    spans `[-(y + 1) * w, -y * w]`.
    """
    if tile_size <= 0:
        raise ValueError("tile_size must be > 0")
    ctx = context or world_context()
    w = pow2(base_zoom - coords.z, ctx)
    with localcontext(ctx):
        return WorldRect(
            x0=w * coords.x,
            x1=w * (coords.x + 1),
            y0=w * (-coords.y - 1),
            y1=w * -coords.y,
            width_per_tile=w,
            tile_size=tile_size,
        )


def visible_tile_range(bounds: PixelBounds, tile_size: int) -> TileRange:
    return TileRange(
        min=Point(
            math.floor(bounds.min.x / tile_size),
            math.floor(bounds.min.y / tile_size),
        ),
        max=Point(
            math.ceil((bounds.max.x - (tile_size - 1)) / tile_size),
            math.ceil((bounds.max.y - (tile_size - 1)) / tile_size),
        ),
    )


@dataclass
class TileEntry:
    coords: TileCoords
    surface: TileSurface
    state: TileState = "pending"
    current: bool = True
    handle: Any = None

    @property
    def loaded(self) -> bool:
        return self.state == "rendered"


@dataclass
class TileRegistry:
    """Tracks the tiles a layer has created and not yet evicted."""

    _entries: dict[TileCoords, TileEntry] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TileEntry]:
        return iter(list(self._entries.values()))

    def get(self, coords: TileCoords) -> TileEntry | None:
        return self._entries.get(coords)

    def register(self, coords: TileCoords, surface: TileSurface) -> TileEntry:
        previous = self._entries.get(coords)
        if previous is not None:
            self._release(previous)
        entry = TileEntry(coords=coords, surface=surface)
        self._entries[coords] = entry
        return entry

    def is_live(self, coords: TileCoords, surface: TileSurface) -> bool:
        entry = self._entries.get(coords)
        return entry is not None and entry.surface is surface

    def mark_rendered(self, coords: TileCoords) -> None:
        entry = self._entries.get(coords)
        if entry is None:
            return
        entry.state = "rendered"
        entry.handle = None

    def set_current(self, coords: TileCoords, current: bool) -> None:
        entry = self._entries.get(coords)
        if entry is not None:
            entry.current = current

    def evict(self, coords: TileCoords) -> TileEntry | None:
        entry = self._entries.pop(coords, None)
        if entry is None:
            return None
        if entry.state == "pending":
            LOGGER.debug("evicting tile %s before its draw completed", coords)
        self._release(entry)
        return entry

    def drop(self, coords: TileCoords, surface: TileSurface) -> None:
        if self.is_live(coords, surface):
            self._entries.pop(coords, None)

    def clear(self) -> None:
        for entry in list(self._entries.values()):
            self._release(entry)
        self._entries.clear()

    def redrawable(self) -> list[TileEntry]:
        return [entry for entry in self._entries.values() if entry.current and entry.loaded]

    @staticmethod
    def _release(entry: TileEntry) -> None:
        handle = entry.handle
        entry.handle = None
        if handle is not None:
            handle.cancel()
        entry.surface.detach()
