from __future__ import annotations

import numpy as np


RGBA = tuple[int, int, int, int]


def new_canvas(width: int, height: int, color: RGBA = (0, 0, 0, 0)) -> np.ndarray:
    canvas = np.empty((max(0, height), max(0, width), 4), dtype=np.uint8)
    canvas[:, :] = np.asarray(color, dtype=np.uint8)
    return canvas


def blit(dst: np.ndarray, src: np.ndarray, x0: int = 0, y0: int = 0) -> None:
    """Alpha-composite ``src`` over ``dst`` at ``(x0, y0)``; the result is opaque."""
    h, w, _ = src.shape
    y1 = min(dst.shape[0], y0 + h)
    x1 = min(dst.shape[1], x0 + w)
    if y0 >= y1 or x0 >= x1:
        return
    view = dst[y0:y1, x0:x1]
    patch = src[: y1 - y0, : x1 - x0]
    alpha = patch[:, :, 3:4].astype(np.float32) / 255.0
    view[:, :, :3] = (patch[:, :, :3] * alpha + view[:, :, :3] * (1.0 - alpha)).astype(np.uint8)
    view[:, :, 3] = 255


def _blend(region: np.ndarray, color: RGBA) -> None:
    a = color[3] / 255.0
    rgb = np.asarray(color[0:3], dtype=np.float32)
    if a >= 1.0:
        region[..., :3] = rgb.astype(np.uint8)
    else:
        region[..., :3] = (rgb * a + region[..., :3].astype(np.float32) * (1.0 - a)).astype(np.uint8)
    region[..., 3] = np.maximum(region[..., 3], color[3])


def draw_pixel(dst: np.ndarray, x: int, y: int, color: RGBA) -> None:
    if y < 0 or y >= dst.shape[0] or x < 0 or x >= dst.shape[1]:
        return
    _blend(dst[y : y + 1, x : x + 1], color)


def draw_hline(dst: np.ndarray, x0: int, x1: int, y: int, color: RGBA) -> None:
    fill_rect(dst, min(x0, x1), y, max(x0, x1), y, color)


def draw_vline(dst: np.ndarray, x: int, y0: int, y1: int, color: RGBA) -> None:
    fill_rect(dst, x, min(y0, y1), x, max(y0, y1), color)


def fill_rect(dst: np.ndarray, x0: int, y0: int, x1: int, y1: int, color: RGBA) -> None:
    """Fill the inclusive rect ``[x0, x1] x [y0, y1]`` clipped to the canvas."""
    xa = max(0, int(x0))
    xb = min(dst.shape[1] - 1, int(x1))
    ya = max(0, int(y0))
    yb = min(dst.shape[0] - 1, int(y1))
    if xa > xb or ya > yb:
        return
    _blend(dst[ya : yb + 1, xa : xb + 1], color)
