from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from stackarea.defaults import TRANSITION_DURATION_S


def ease_cubic_in_out(t: float) -> float:
    t = max(0.0, min(1.0, t))
    if t < 0.5:
        return 4.0 * t * t * t
    return 1.0 - ((-2.0 * t + 2.0) ** 3) / 2.0


@dataclass
class Transition:
    """Eased interpolation between two position arrays, advanced by the host loop.

    Arrays of different shapes cannot be interpolated; the transition then
    snaps to ``end``.
    """

    start: np.ndarray
    end: np.ndarray
    duration_s: float = TRANSITION_DURATION_S
    elapsed_s: float = 0.0

    def __post_init__(self) -> None:
        if self.duration_s < 0:
            raise ValueError("duration_s must be >= 0")
        self.start = np.asarray(self.start, dtype=np.float64)
        self.end = np.asarray(self.end, dtype=np.float64)
        if self.start.shape != self.end.shape:
            self.start = self.end.copy()
            self.elapsed_s = self.duration_s

    @classmethod
    def settled(cls, values: np.ndarray) -> "Transition":
        arr = np.asarray(values, dtype=np.float64)
        return cls(start=arr.copy(), end=arr.copy(), duration_s=0.0)

    @property
    def done(self) -> bool:
        return self.elapsed_s >= self.duration_s

    def advance(self, dt: float) -> np.ndarray:
        self.elapsed_s = min(self.duration_s, self.elapsed_s + max(0.0, float(dt)))
        return self.value()

    def value(self) -> np.ndarray:
        if self.done or self.duration_s == 0:
            return self.end.copy()
        k = ease_cubic_in_out(self.elapsed_s / self.duration_s)
        return self.start + (self.end - self.start) * k
