from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from functools import cached_property
import math

from .world import ONE, world_context


MANTISSAS = (1, 2, 5)
DEFAULT_MAX_DENSITY = 20.0


@dataclass(frozen=True)
class GridInterval:
    """Grid spacing `mantissa * 10**exponent` with mantissa in {1, 2, 5}."""

    mantissa: int
    exponent: int

    def __post_init__(self) -> None:
        if self.mantissa not in MANTISSAS:
            raise ValueError(f"mantissa must be one of {MANTISSAS}, got {self.mantissa}")

    @classmethod
    def from_level(cls, level: int) -> "GridInterval":
        e = level // 3
        return cls(mantissa=MANTISSAS[level - 3 * e], exponent=e)

    @property
    def level(self) -> int:
        return 3 * self.exponent + MANTISSAS.index(self.mantissa)

    @cached_property
    def value(self) -> Decimal:
        return Decimal(self.mantissa).scaleb(self.exponent)

    @cached_property
    def inverse(self) -> Decimal:
        # 1/1, 1/2 and 1/5 are exact decimals.
        ctx = world_context()
        return ctx.divide(ONE, Decimal(self.mantissa)).scaleb(-self.exponent)

    def __float__(self) -> float:
        return float(self.value)


def grid_intervals(
    width_per_pixel: float,
    *,
    max_density: float = DEFAULT_MAX_DENSITY,
) -> tuple[GridInterval, GridInterval]:
    """Returns the (major, minor) grid intervals for a pixel of `width_per_pixel` world units.

    The minor interval is the smallest 1-2-5 value whose on-screen spacing is at
    least `max_density` pixels; the major interval sits two levels above it.
    """
    e = math.floor(math.log10(width_per_pixel * max_density)) - 1
    level = 3 * e
    while True:
        minor = GridInterval.from_level(level)
        if float(minor.value) / width_per_pixel >= max_density:
            return GridInterval.from_level(level + 2), minor
        level += 1


def interval_ratio(major: GridInterval, minor: GridInterval) -> Decimal:
    return world_context().divide(major.value, minor.value)
