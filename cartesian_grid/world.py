from __future__ import annotations

from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_EVEN, Context, Decimal
from functools import lru_cache


DEFAULT_PRECISION = 160

ZERO = Decimal(0)
ONE = Decimal(1)


@lru_cache(maxsize=8)
def world_context(precision: int = DEFAULT_PRECISION) -> Context:
    """Decimal context used for every world-coordinate operation."""
    if precision <= 0:
        raise ValueError("precision must be > 0")
    return Context(prec=precision, rounding=ROUND_HALF_EVEN)


def to_world(value: int | float | str | Decimal) -> Decimal:
    # Decimal(float) is exact, so binary fractions such as 2**-40 survive.
    if isinstance(value, Decimal):
        return value
    return Decimal(value)


def pow2(n: int, context: Context | None = None) -> Decimal:
    ctx = context or world_context()
    if n >= 0:
        return ctx.power(Decimal(2), n)
    return ctx.divide(ONE, ctx.power(Decimal(2), -n))


def floor_int(value: Decimal) -> Decimal:
    return value.to_integral_value(rounding=ROUND_FLOOR)


def ceil_int(value: Decimal) -> Decimal:
    return value.to_integral_value(rounding=ROUND_CEILING)
