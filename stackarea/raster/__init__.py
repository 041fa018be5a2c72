from .canvas import blit, draw_hline, draw_pixel, draw_vline, fill_rect, new_canvas
from .layers import LayerCache
from .shapes import draw_disc, draw_polyline, fill_between
from .text import draw_text, text_size

__all__ = [
    "LayerCache",
    "blit",
    "draw_disc",
    "draw_hline",
    "draw_pixel",
    "draw_polyline",
    "draw_text",
    "draw_vline",
    "fill_between",
    "fill_rect",
    "new_canvas",
    "text_size",
]
