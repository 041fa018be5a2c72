from __future__ import annotations

from typing import Callable, Sequence, TypeVar

import numpy as np


T = TypeVar("T")


def closest(samples: Sequence[T], pixel_x: float, project: Callable[[T], float]) -> int | None:
    """Index of the sample whose projection is nearest to ``pixel_x``.

    Ties keep the first index. Returns None for an empty sequence.
    """
    best: int | None = None
    best_distance = 0.0
    for i, sample in enumerate(samples):
        distance = abs(project(sample) - pixel_x)
        if best is None or distance < best_distance:
            best = i
            best_distance = distance
    return best


def closest_pixel(pixels: np.ndarray, pixel_x: float) -> int | None:
    """Vectorized :func:`closest` over already projected pixel positions."""
    if pixels.size == 0:
        return None
    # argmin returns the first minimum, matching the strict less-than scan.
    return int(np.argmin(np.abs(pixels.astype(np.float64, copy=False) - float(pixel_x))))
