from __future__ import annotations

import asyncio
import logging

from .config import GridConfig
from .fonts import FontCache, FontSpec
from .grid_renderer import render_grid_tile
from .host import DoneCallback, Subscription, TileHost
from .labels import LabelPlacement, render_label_tile
from .raster.draw_text import Font
from .raster.surface import TileSurface
from .tiles import TileCoords, TileRange, TileRegistry, WorldRect, visible_tile_range, world_rect


LOGGER = logging.getLogger(__name__)


class _TileLayer:
    def __init__(self, config: GridConfig | None = None) -> None:
        self.config = config or GridConfig()
        self.tiles = TileRegistry()

    def world_rect(self, coords: TileCoords) -> WorldRect:
        return world_rect(
            coords,
            base_zoom=self.config.base_zoom_level,
            tile_size=self.config.tile_size,
            context=self.config.world_context(),
        )

    def evict_tile(self, coords: TileCoords) -> None:
        self.tiles.evict(coords)

    def set_tile_current(self, coords: TileCoords, current: bool) -> None:
        self.tiles.set_current(coords, current)

    def _new_surface(self) -> TileSurface:
        return TileSurface(size=self.config.tile_size, device_pixel_ratio=self.config.device_pixel_ratio)

    def _fail(self, coords: TileCoords, surface: TileSurface, done: DoneCallback, exc: Exception) -> None:
        LOGGER.warning("drawing tile %s failed: %s", coords, exc)
        self.tiles.drop(coords, surface)
        done(exc, surface)


class GridLinesLayer(_TileLayer):
    """Tile layer drawing minor lines, major lines and axes."""

    def create_tile(self, coords: TileCoords, done: DoneCallback) -> TileSurface:
        surface = self._new_surface()
        entry = self.tiles.register(coords, surface)
        # Drawn on the next loop turn so the host's creation path stays cheap.
        entry.handle = asyncio.get_running_loop().call_soon(self._draw, coords, surface, done)
        return surface

    def _draw(self, coords: TileCoords, surface: TileSurface, done: DoneCallback) -> None:
        if not self.tiles.is_live(coords, surface):
            return
        try:
            render_grid_tile(surface, self.world_rect(coords), self.config)
        except Exception as exc:  # noqa: BLE001
            self._fail(coords, surface, done, exc)
            return
        self.tiles.mark_rendered(coords)
        done(None, surface)


class GridLabelsLayer(_TileLayer):
    """Tile layer drawing tick labels, kept inside the viewport as the map moves."""

    def __init__(self, config: GridConfig | None = None, *, fonts: FontCache | None = None) -> None:
        super().__init__(config)
        self.fonts = fonts or FontCache()
        self._host: TileHost | None = None
        self._subscription: Subscription | None = None

    @property
    def font_spec(self) -> FontSpec:
        # Fonts are rasterised at device resolution.
        return FontSpec(
            family=self.config.label_font_family,
            size_px=self.config.label_font_size_px * self.config.device_pixel_ratio,
        )

    @property
    def attached(self) -> bool:
        return self._host is not None

    def attach(self, host: TileHost) -> None:
        if self._host is not None:
            raise RuntimeError("labels layer is already attached")
        self._host = host
        self._subscription = host.on_move(self.redraw_current_tiles)

    def detach(self) -> None:
        if self._subscription is not None:
            self._subscription.release()
        self._subscription = None
        self._host = None
        self.tiles.clear()

    def visible_tile_range(self) -> TileRange:
        return visible_tile_range(self._require_host().pixel_bounds(), self.config.tile_size)

    def create_tile(self, coords: TileCoords, done: DoneCallback) -> TileSurface:
        self._require_host()
        surface = self._new_surface()
        entry = self.tiles.register(coords, surface)
        entry.handle = asyncio.get_running_loop().create_task(self._create(coords, surface, done))
        return surface

    def redraw_current_tiles(self) -> int:
        """Redraws rendered, current tiles in place against the live viewport."""
        if self._host is None:
            return 0
        font = self.fonts.get(self.font_spec)
        entries = self.tiles.redrawable()
        if font is None or not entries:
            return 0
        tile_range = self.visible_tile_range()
        for entry in entries:
            self._draw_tile(entry.coords, entry.surface, font, tile_range)
        LOGGER.debug("redrew %d label tiles", len(entries))
        return len(entries)

    async def _create(self, coords: TileCoords, surface: TileSurface, done: DoneCallback) -> None:
        font = await self.fonts.load(self.font_spec)
        if self._host is None or not self.tiles.is_live(coords, surface):
            return
        try:
            self._draw_tile(coords, surface, font, self.visible_tile_range())
        except Exception as exc:  # noqa: BLE001
            self._fail(coords, surface, done, exc)
            return
        self.tiles.mark_rendered(coords)
        done(None, surface)

    def _draw_tile(
        self,
        coords: TileCoords,
        surface: TileSurface,
        font: Font,
        tile_range: TileRange,
    ) -> list[LabelPlacement]:
        host = self._require_host()
        return render_label_tile(
            surface,
            coords,
            self.world_rect(coords),
            tile_range,
            container=host.container_rect(),
            tile_rect=host.tile_rect(coords),
            font=font,
            config=self.config,
        )

    def _require_host(self) -> TileHost:
        if self._host is None:
            raise RuntimeError("labels layer is not attached to a host")
        return self._host


class GridOverlay:
    """Grid lines and tick labels composed as one overlay."""

    def __init__(self, config: GridConfig | None = None, *, fonts: FontCache | None = None) -> None:
        self.config = config or GridConfig()
        self.lines = GridLinesLayer(self.config)
        self.labels = GridLabelsLayer(self.config, fonts=fonts)

    @property
    def layers(self) -> tuple[GridLinesLayer, GridLabelsLayer]:
        return (self.lines, self.labels)

    def attach(self, host: TileHost) -> None:
        self.labels.attach(host)

    def detach(self) -> None:
        self.labels.detach()
        self.lines.tiles.clear()

    def create_tiles(self, coords: TileCoords, done: DoneCallback) -> tuple[TileSurface, TileSurface]:
        return self.lines.create_tile(coords, done), self.labels.create_tile(coords, done)

    def evict_tile(self, coords: TileCoords) -> None:
        for layer in self.layers:
            layer.evict_tile(coords)

    def set_tile_current(self, coords: TileCoords, current: bool) -> None:
        for layer in self.layers:
            layer.set_tile_current(coords, current)
