from __future__ import annotations


class GridError(RuntimeError):
    """Base class for grid overlay failures."""


class TransformError(GridError):
    """A world-to-pixel transform produced a non-finite pixel coordinate."""


class GridConfigError(ValueError):
    pass
