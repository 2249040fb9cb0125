from cartesian_grid.config import GridConfig, load_config
from cartesian_grid.errors import GridConfigError, GridError, TransformError
from cartesian_grid.fonts import FontCache, FontSpec
from cartesian_grid.grid_renderer import grid_line_indices, render_grid_tile
from cartesian_grid.host import MoveEvents, Rect, TileHost
from cartesian_grid.intervals import GridInterval, grid_intervals
from cartesian_grid.labels import LabelPlacement, format_tick, layout_label_tile, render_label_tile
from cartesian_grid.layers import GridLabelsLayer, GridLinesLayer, GridOverlay
from cartesian_grid.raster import TileSurface
from cartesian_grid.tiles import PixelBounds, Point, TileCoords, TileRange, WorldRect, visible_tile_range, world_rect
from cartesian_grid.transform import get_transform, tile_transforms

__all__ = [
    "FontCache",
    "FontSpec",
    "GridConfig",
    "GridConfigError",
    "GridError",
    "GridInterval",
    "GridLabelsLayer",
    "GridLinesLayer",
    "GridOverlay",
    "LabelPlacement",
    "MoveEvents",
    "PixelBounds",
    "Point",
    "Rect",
    "TileCoords",
    "TileHost",
    "TileRange",
    "TileSurface",
    "TransformError",
    "WorldRect",
    "format_tick",
    "get_transform",
    "grid_intervals",
    "grid_line_indices",
    "layout_label_tile",
    "load_config",
    "render_grid_tile",
    "render_label_tile",
    "tile_transforms",
    "visible_tile_range",
    "world_rect",
]
