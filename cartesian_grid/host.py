from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol

from .raster.surface import TileSurface
from .tiles import PixelBounds, TileCoords


@dataclass(frozen=True)
class Rect:
    """Screen-space rectangle in CSS pixels."""

    x: float
    y: float
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.x

    @property
    def top(self) -> float:
        return self.y

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains(self, other: "Rect", *, tolerance: float = 1e-9) -> bool:
        return (
            other.left >= self.left - tolerance
            and other.top >= self.top - tolerance
            and other.right <= self.right + tolerance
            and other.bottom <= self.bottom + tolerance
        )

    def inset(self, amount: float) -> "Rect":
        return Rect(self.x + amount, self.y + amount, self.width - 2 * amount, self.height - 2 * amount)


DoneCallback = Callable[[Exception | None, TileSurface], None]
MoveListener = Callable[[], None]


class Subscription(Protocol):
    def release(self) -> None:
        ...


class TileHost(Protocol):
    """What the grid layers need from the tiling/viewport framework."""

    def pixel_bounds(self) -> PixelBounds:
        ...

    def container_rect(self) -> Rect:
        ...

    def tile_rect(self, coords: TileCoords) -> Rect:
        ...

    def on_move(self, listener: MoveListener) -> Subscription:
        ...


class MoveEvents:
    """Listener list a host can use to back `TileHost.on_move`."""

    def __init__(self) -> None:
        self._listeners: list[MoveListener] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: MoveListener) -> "_MoveSubscription":
        self._listeners.append(listener)
        return _MoveSubscription(self, listener)

    def emit(self) -> None:
        for listener in list(self._listeners):
            listener()

    def _remove(self, listener: MoveListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)


class _MoveSubscription:
    def __init__(self, events: MoveEvents, listener: MoveListener) -> None:
        self._events: MoveEvents | None = events
        self._listener: MoveListener | None = listener

    @property
    def active(self) -> bool:
        return self._events is not None

    def release(self) -> None:
        if self._events is None or self._listener is None:
            return
        self._events._remove(self._listener)
        self._events = None
        self._listener = None
