from __future__ import annotations

import numpy as np
import torch

from stackarea.surface import FullRewrite, ReplaceRect, WriteBatch


def _check_rgba(frame_rgba: np.ndarray, label: str) -> None:
    if frame_rgba.dtype != np.uint8:
        raise ValueError(f"{label} must be uint8")
    if frame_rgba.ndim != 3 or frame_rgba.shape[2] != 4:
        raise ValueError(f"{label} must have shape (H, W, 4)")


def compile_full_rewrite_batch(frame_rgba: np.ndarray) -> WriteBatch:
    _check_rgba(frame_rgba, "frame_rgba")
    tensor = torch.from_numpy(np.ascontiguousarray(frame_rgba))
    return WriteBatch([FullRewrite(tensor)])


def compile_replace_rect_batch(frame_rgba: np.ndarray, x: int, y: int, width: int, height: int) -> WriteBatch:
    """Cut a rect out of a full frame; the rect is clipped to the frame."""
    _check_rgba(frame_rgba, "frame_rgba")
    x0 = max(0, int(x))
    y0 = max(0, int(y))
    x1 = min(frame_rgba.shape[1], x0 + int(width))
    y1 = min(frame_rgba.shape[0], y0 + int(height))
    if x1 <= x0 or y1 <= y0:
        raise ValueError("rect does not intersect the frame")
    patch = torch.from_numpy(np.ascontiguousarray(frame_rgba[y0:y1, x0:x1]))
    return WriteBatch([ReplaceRect(x=x0, y=y0, width=x1 - x0, height=y1 - y0, rect_h_w_4=patch)])
