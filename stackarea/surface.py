from __future__ import annotations

from dataclasses import dataclass
import logging
import threading
import time
from typing import TypeAlias

import torch


LOGGER = logging.getLogger(__name__)
MAGENTA = torch.tensor([255, 0, 255, 255], dtype=torch.uint8)


@dataclass(frozen=True)
class FullRewrite:
    tensor_h_w_4: torch.Tensor


@dataclass(frozen=True)
class ReplaceRect:
    x: int
    y: int
    width: int
    height: int
    rect_h_w_4: torch.Tensor


WriteOp: TypeAlias = FullRewrite | ReplaceRect


@dataclass(frozen=True)
class WriteBatch:
    operations: list[WriteOp]


@dataclass(frozen=True)
class CommitEvent:
    revision: int
    ts_ns: int


class FrameSurface:
    """RGBA255 frame holder; each write batch is applied atomically.

    A full rewrite may change the surface size (container resize).
    """

    def __init__(self, height: int, width: int, background: tuple[int, int, int, int] = (255, 255, 255, 255)) -> None:
        if height <= 0 or width <= 0:
            raise ValueError("height and width must be > 0")
        self._lock = threading.Lock()
        self._revision = 0
        bg = torch.tensor(background, dtype=torch.uint8).view(1, 1, 4)
        self._matrix = bg.expand(height, width, 4).clone()

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def shape(self) -> tuple[int, int]:
        with self._lock:
            return (int(self._matrix.shape[0]), int(self._matrix.shape[1]))

    def read_snapshot(self) -> torch.Tensor:
        with self._lock:
            return self._matrix.clone()

    def submit_write_batch(self, batch: WriteBatch) -> CommitEvent:
        if not batch.operations:
            raise ValueError("write batch must include at least one operation")

        with self._lock:
            staged = self._matrix.clone()
            offending_pixels = 0
            for op in batch.operations:
                staged, op_offending = _apply_operation(staged, op)
                offending_pixels += op_offending

            if offending_pixels > 0:
                LOGGER.warning("write batch sanitized invalid RGBA channels; offending_pixels=%d", offending_pixels)

            self._matrix = staged
            self._revision += 1
            return CommitEvent(revision=self._revision, ts_ns=time.time_ns())


def _apply_operation(matrix: torch.Tensor, op: WriteOp) -> tuple[torch.Tensor, int]:
    if isinstance(op, FullRewrite):
        if op.tensor_h_w_4.ndim != 3 or op.tensor_h_w_4.shape[2] != 4:
            raise ValueError(f"full rewrite has invalid shape: {tuple(op.tensor_h_w_4.shape)}")
        height, width, _ = op.tensor_h_w_4.shape
        if height <= 0 or width <= 0:
            raise ValueError("full rewrite must be non-empty")
        return _sanitize_rgba_tensor(op.tensor_h_w_4, (height, width, 4))
    if isinstance(op, ReplaceRect):
        height, width, _ = matrix.shape
        _validate_rect(op.x, op.y, op.width, op.height, width, height)
        patch, offending = _sanitize_rgba_tensor(op.rect_h_w_4, (op.height, op.width, 4))
        matrix[op.y : op.y + op.height, op.x : op.x + op.width, :] = patch
        return matrix, offending
    raise TypeError(f"Unsupported write op: {type(op)!r}")


def _validate_rect(x: int, y: int, width: int, height: int, matrix_width: int, matrix_height: int) -> None:
    if width <= 0 or height <= 0:
        raise ValueError("rect width/height must be > 0")
    if x < 0 or y < 0:
        raise ValueError("rect x/y must be >= 0")
    if x + width > matrix_width or y + height > matrix_height:
        raise ValueError("rect exceeds surface bounds")


def _sanitize_rgba_tensor(value: torch.Tensor, expected_shape: tuple[int, ...]) -> tuple[torch.Tensor, int]:
    if not torch.is_tensor(value):
        raise ValueError("rgba data must be a torch.Tensor")
    if tuple(value.shape) != expected_shape:
        raise ValueError(f"rgba tensor has invalid shape: {tuple(value.shape)} expected {expected_shape}")
    if value.dtype == torch.uint8:
        return value.clone(), 0
    raw = value.to(torch.float32)
    invalid = ~torch.isfinite(raw) | (raw < 0) | (raw > 255)
    pixel_mask = torch.any(invalid, dim=-1)
    invalid_pixels = int(pixel_mask.sum().item())
    clamped = torch.clamp(torch.nan_to_num(raw, nan=0.0), 0, 255).to(torch.uint8)
    if invalid_pixels > 0:
        clamped[pixel_mask] = MAGENTA
    return clamped, invalid_pixels
