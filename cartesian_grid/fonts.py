from __future__ import annotations

import asyncio
from dataclasses import dataclass
from functools import lru_cache
import logging
from pathlib import Path
from typing import Callable

from PIL import ImageFont

from .raster.draw_text import Font


LOGGER = logging.getLogger(__name__)

SANS_FONT_FALLBACK_PATTERNS = (
    "notosans",
    "noto sans",
    "dejavusans",
    "dejavu sans",
    "liberationsans",
    "liberation sans",
    "helvetica",
    "arial",
)

FONT_DIRS = (
    Path.home() / "Library" / "Fonts",
    Path("/Library/Fonts"),
    Path("/System/Library/Fonts"),
    Path("/System/Library/Fonts/Supplemental"),
    Path("/usr/share/fonts"),
    Path("/usr/local/share/fonts"),
)


@dataclass(frozen=True)
class FontSpec:
    family: str
    size_px: float

    @property
    def css(self) -> str:
        return f"{self.size_px:g}px '{self.family}'"


FontLoader = Callable[[FontSpec], Font]


class FontLoadError(OSError):
    pass


def load_font(spec: FontSpec) -> Font:
    """Loads a TrueType font matching `spec`; raises FontLoadError if none is usable."""
    size = max(1, int(round(spec.size_px)))
    font_path = resolve_font_path(spec.family)
    if font_path is None:
        raise FontLoadError(f"no font file found for {spec.css}")
    try:
        return ImageFont.truetype(str(font_path), size=size)
    except OSError as exc:
        raise FontLoadError(f"cannot load {font_path}: {exc}") from exc


def default_font(spec: FontSpec) -> Font:
    return ImageFont.load_default(size=max(1, int(round(spec.size_px))))


@lru_cache(maxsize=32)
def resolve_font_path(font_family: str) -> Path | None:
    wanted = font_family.strip().lower()
    patterns = ((wanted,) if wanted else ()) + SANS_FONT_FALLBACK_PATTERNS

    candidates: list[Path] = []
    for base in FONT_DIRS:
        if not base.exists():
            continue
        for ext in ("*.ttf", "*.otf", "*.ttc"):
            candidates.extend(sorted(base.rglob(ext)))

    for pattern in patterns:
        p = pattern.replace(" ", "")
        for path in candidates:
            stem = path.stem.lower().replace(" ", "").replace("-", "")
            if stem == p or stem == p + "regular":
                return path
        for path in candidates:
            name = path.name.lower().replace(" ", "")
            if p in name:
                return path
    return None


class FontCache:
    """Process-wide font readiness cache.

    `load` awaits the font once; concurrent callers share the same load and
    later callers get the cached font. A failed load falls back to Pillow's
    default font so tiles never wait forever.
    """

    def __init__(self, loader: FontLoader = load_font, fallback: FontLoader = default_font) -> None:
        self._loader = loader
        self._fallback = fallback
        self._fonts: dict[FontSpec, Font] = {}
        self._pending: dict[FontSpec, asyncio.Future[Font]] = {}

    def is_ready(self, spec: FontSpec) -> bool:
        return spec in self._fonts

    def get(self, spec: FontSpec) -> Font | None:
        return self._fonts.get(spec)

    async def load(self, spec: FontSpec) -> Font:
        font = self._fonts.get(spec)
        if font is not None:
            return font
        pending = self._pending.get(spec)
        if pending is None:
            pending = asyncio.ensure_future(self._load(spec))
            self._pending[spec] = pending
        # Shielded so one cancelled tile does not cancel the load for the others.
        return await asyncio.shield(pending)

    async def _load(self, spec: FontSpec) -> Font:
        try:
            font = await asyncio.to_thread(self._loader, spec)
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("font %s unavailable, using default font: %s", spec.css, exc)
            font = self._fallback(spec)
        self._fonts[spec] = font
        self._pending.pop(spec, None)
        return font
