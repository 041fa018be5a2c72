from __future__ import annotations

import math

import numpy as np

from stackarea.raster.canvas import RGBA, draw_pixel, draw_vline, fill_rect


def draw_polyline(dst: np.ndarray, xs: np.ndarray, ys: np.ndarray, color: RGBA, width: int = 1) -> None:
    if xs.size < 2:
        return
    px = np.rint(xs).astype(np.int64)
    py = np.rint(ys).astype(np.int64)
    for i in range(px.size - 1):
        _draw_segment(dst, int(px[i]), int(py[i]), int(px[i + 1]), int(py[i + 1]), color=color, width=width)


def fill_between(dst: np.ndarray, xs: np.ndarray, y_top: np.ndarray, y_bottom: np.ndarray, color: RGBA) -> None:
    """Fill the region between two piecewise-linear curves sharing ``xs``.

    ``xs`` must be non-decreasing. Each pixel column is filled from the
    interpolated top to the interpolated bottom.
    """
    if xs.size == 0:
        return
    if xs.size == 1:
        draw_vline(dst, int(round(xs[0])), int(round(y_top[0])), int(round(y_bottom[0])), color)
        return
    lo = max(0, int(math.ceil(float(xs[0]))))
    hi = min(dst.shape[1] - 1, int(math.floor(float(xs[-1]))))
    if hi < lo:
        return
    columns = np.arange(lo, hi + 1, dtype=np.float64)
    tops = np.rint(np.interp(columns, xs, y_top)).astype(np.int64)
    bottoms = np.rint(np.interp(columns, xs, y_bottom)).astype(np.int64)
    for col, top, bottom in zip(columns.astype(np.int64).tolist(), tops.tolist(), bottoms.tolist()):
        if top == bottom:
            continue
        draw_vline(dst, col, top, bottom, color)


def draw_disc(dst: np.ndarray, cx: int, cy: int, radius: int, color: RGBA) -> None:
    if radius <= 0:
        draw_pixel(dst, cx, cy, color)
        return
    r2 = radius * radius
    for dy in range(-radius, radius + 1):
        half = int(math.isqrt(r2 - dy * dy))
        fill_rect(dst, cx - half, cy + dy, cx + half, cy + dy, color)


def _draw_segment(dst: np.ndarray, x0: int, y0: int, x1: int, y1: int, color: RGBA, width: int) -> None:
    dx = abs(x1 - x0)
    sx = 1 if x0 < x1 else -1
    dy = -abs(y1 - y0)
    sy = 1 if y0 < y1 else -1
    err = dx + dy
    radius = max(0, width // 2)

    while True:
        fill_rect(dst, x0 - radius, y0 - radius, x0 + radius, y0 + radius, color)
        if x0 == x1 and y0 == y1:
            break
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x0 += sx
        if e2 <= dx:
            err += dx
            y0 += sy
