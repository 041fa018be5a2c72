from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

import numpy as np

from stackarea.defaults import (
    AREA_OUTLINE_COLOR,
    DEFAULT_SERIES_COLOR,
    DEFAULT_MARGIN_BOTTOM,
    DEFAULT_MARGIN_LEFT,
    DEFAULT_MARGIN_RIGHT,
    DEFAULT_MARGIN_TOP,
)


@dataclass(frozen=True)
class Sample:
    x: float
    y: float
    fy: str | None = None


@dataclass(frozen=True)
class Snapshot:
    d: float
    e: tuple[str, ...] = ()
    fy: str | None = None

    @property
    def has_events(self) -> bool:
        return len(self.e) > 0


@dataclass(frozen=True)
class SeriesData:
    """Index-aligned metric values.

    ``x`` holds one timestamp per metric and sample (epoch milliseconds),
    ``y`` the raw values, both shaped ``(metric_count, sample_count)``.
    ``fy`` mirrors that shape with optional pre-formatted display values.
    """

    x: np.ndarray
    y: np.ndarray
    fy: tuple[tuple[str | None, ...], ...] = ()

    @property
    def metric_count(self) -> int:
        return int(self.y.shape[0])

    @property
    def sample_count(self) -> int:
        if self.y.ndim < 2:
            return 0
        return int(self.y.shape[1])

    def is_empty(self) -> bool:
        return self.metric_count == 0 or self.sample_count == 0

    def sample(self, metric: int, index: int) -> Sample:
        fy = self.fy[metric][index] if self.fy else None
        return Sample(x=float(self.x[metric, index]), y=float(self.y[metric, index]), fy=fy)

    @classmethod
    def empty(cls) -> "SeriesData":
        return cls(x=np.zeros((0, 0), dtype=np.float64), y=np.zeros((0, 0), dtype=np.float64), fy=())


@dataclass(frozen=True)
class StackedBand:
    x: np.ndarray
    y0: np.ndarray
    y: np.ndarray

    @property
    def top(self) -> np.ndarray:
        return self.y0 + self.y

    def __len__(self) -> int:
        return int(self.y.size)


@dataclass(frozen=True)
class Margin:
    top: int = DEFAULT_MARGIN_TOP
    right: int = DEFAULT_MARGIN_RIGHT
    bottom: int = DEFAULT_MARGIN_BOTTOM
    left: int = DEFAULT_MARGIN_LEFT

    def __post_init__(self) -> None:
        if min(self.top, self.right, self.bottom, self.left) < 0:
            raise ValueError("margins must be >= 0")

    @classmethod
    def coerce(cls, value: "Margin | Mapping[str, Any]") -> "Margin":
        if isinstance(value, Margin):
            return value
        unknown = set(value) - {"top", "right", "bottom", "left"}
        if unknown:
            raise ValueError(f"unknown margin keys: {sorted(unknown)}")
        base = cls()
        return cls(
            top=int(value.get("top", base.top)),
            right=int(value.get("right", base.right)),
            bottom=int(value.get("bottom", base.bottom)),
            left=int(value.get("left", base.left)),
        )


@dataclass(frozen=True)
class StackAreaStyle:
    background: tuple[int, int, int, int] = (255, 255, 255, 255)
    text_color: tuple[int, int, int, int] = (68, 68, 68, 255)
    axis_color: tuple[int, int, int, int] = (153, 153, 153, 255)
    scanner_color: tuple[int, int, int, int] = (68, 68, 68, 255)
    outline_color: tuple[int, int, int, int] = AREA_OUTLINE_COLOR
    fallback_series_color: tuple[int, int, int, int] = DEFAULT_SERIES_COLOR
    event_tick_color: tuple[int, int, int, int] = (75, 159, 213, 255)
    font_px: float = 12.0
    small_font_px: float = 11.0
