from __future__ import annotations

from dataclasses import dataclass
import time
from typing import Literal, Protocol

from stackarea.surface import CommitEvent, FrameSurface, WriteBatch


PointerEventType = Literal["pointer_move", "pointer_down", "pointer_up"]


@dataclass(frozen=True)
class PointerEvent:
    """Pointer position in chart canvas coordinates (top-left origin)."""

    event_type: PointerEventType
    x: float
    y: float
    ts_ns: int = 0


def pointer_move(x: float, y: float = 0.0) -> PointerEvent:
    return PointerEvent(event_type="pointer_move", x=float(x), y=float(y), ts_ns=time.time_ns())


class ChartHost(Protocol):
    def measure_width(self) -> float:
        ...

    def present(self, batch: WriteBatch) -> None:
        ...


class SurfaceHost:
    """Host backed by a :class:`FrameSurface` with a caller-controlled container width."""

    def __init__(self, container_width: float, height: int, surface: FrameSurface | None = None) -> None:
        self.container_width = float(container_width)
        self.surface = surface or FrameSurface(height=max(1, int(height)), width=max(1, int(container_width)))
        self.last_commit: CommitEvent | None = None
        self.presented = 0

    def measure_width(self) -> float:
        return self.container_width

    def resize(self, container_width: float) -> None:
        self.container_width = float(container_width)

    def present(self, batch: WriteBatch) -> None:
        self.last_commit = self.surface.submit_write_batch(batch)
        self.presented += 1
