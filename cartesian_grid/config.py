from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Context
from pathlib import Path
import tomllib
from typing import Any

from .errors import GridConfigError
from .raster.canvas import RGBA
from .world import DEFAULT_PRECISION, world_context


WHITE: RGBA = (255, 255, 255, 255)
BLACK: RGBA = (0, 0, 0, 255)
GRAY: RGBA = (128, 128, 128, 255)


@dataclass(frozen=True)
class GridConfig:
    tile_size: int = 256
    base_zoom_level: int = 6
    device_pixel_ratio: float = 1.0
    # One minor line per `max_density` CSS px at most.
    max_density: float = 20.0
    decimal_precision: int = DEFAULT_PRECISION
    label_font_family: str = "Noto Sans"
    label_font_size_px: float = 14.0
    # Distance between the axes and tick labels.
    label_offset: float = 4.0
    # Distance between the map boundary and tick labels.
    label_padding: float = 4.0
    label_outline_width: int = 3
    background_color: RGBA = WHITE
    minor_color: RGBA = (224, 224, 224, 255)
    major_color: RGBA = (192, 192, 192, 255)
    axis_color: RGBA = BLACK
    label_color: RGBA = BLACK
    label_muted_color: RGBA = GRAY
    label_outline_color: RGBA = WHITE

    def __post_init__(self) -> None:
        if self.tile_size <= 0:
            raise GridConfigError("tile_size must be > 0")
        if self.device_pixel_ratio <= 0:
            raise GridConfigError("device_pixel_ratio must be > 0")
        if self.max_density <= 0:
            raise GridConfigError("max_density must be > 0")
        if self.decimal_precision < 32:
            raise GridConfigError("decimal_precision must be >= 32")
        if self.label_font_size_px <= 0:
            raise GridConfigError("label_font_size_px must be > 0")
        if self.label_offset < 0 or self.label_padding < 0:
            raise GridConfigError("label_offset/label_padding must be >= 0")
        if self.label_outline_width < 0:
            raise GridConfigError("label_outline_width must be >= 0")

    @property
    def device_tile_size(self) -> int:
        return max(1, int(round(self.tile_size * self.device_pixel_ratio)))

    def world_context(self) -> Context:
        return world_context(self.decimal_precision)


_COLOR_FIELDS = {f.name for f in fields(GridConfig) if f.name.endswith("_color")}
_KNOWN_FIELDS = {f.name for f in fields(GridConfig)}


def load_config(path: str | Path) -> GridConfig:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"grid config not found: {config_path}")
    with config_path.open("rb") as f:
        raw = tomllib.load(f)
    table = raw.get("grid", {})
    if not isinstance(table, dict):
        raise GridConfigError("`grid` must be a table")
    return config_from_mapping(table)


def config_from_mapping(raw: dict[str, Any]) -> GridConfig:
    unknown = sorted(set(raw) - _KNOWN_FIELDS)
    if unknown:
        raise GridConfigError(f"unknown grid config keys: {', '.join(unknown)}")
    values: dict[str, Any] = {}
    for key, value in raw.items():
        if key in _COLOR_FIELDS:
            values[key] = _coerce_color(value, key)
        else:
            values[key] = value
    try:
        return GridConfig(**values)
    except TypeError as exc:
        raise GridConfigError(str(exc)) from exc


def _coerce_color(value: Any, field_name: str) -> RGBA:
    if isinstance(value, str):
        text = value.strip().lstrip("#")
        if len(text) not in (6, 8):
            raise GridConfigError(f"`{field_name}` must be #rrggbb or #rrggbbaa")
        try:
            channels = [int(text[i : i + 2], 16) for i in range(0, len(text), 2)]
        except ValueError as exc:
            raise GridConfigError(f"`{field_name}` is not a hex color") from exc
    elif isinstance(value, (list, tuple)):
        channels = list(value)
    else:
        raise GridConfigError(f"`{field_name}` must be a color string or array")
    if len(channels) == 3:
        channels.append(255)
    if len(channels) != 4 or not all(isinstance(c, int) and 0 <= c <= 255 for c in channels):
        raise GridConfigError(f"`{field_name}` must have 3 or 4 channels in 0..255")
    return (channels[0], channels[1], channels[2], channels[3])
