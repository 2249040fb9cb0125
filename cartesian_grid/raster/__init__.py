from .canvas import RGBA, draw_hline, draw_vline, fill, new_canvas, stroke_horizontal, stroke_vertical
from .draw_text import Font, TextMetrics, draw_text, measure_text
from .surface import TileSurface

__all__ = [
    "Font",
    "RGBA",
    "TextMetrics",
    "TileSurface",
    "draw_hline",
    "draw_text",
    "draw_vline",
    "fill",
    "measure_text",
    "new_canvas",
    "stroke_horizontal",
    "stroke_vertical",
]
