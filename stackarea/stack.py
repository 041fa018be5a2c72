from __future__ import annotations

import numpy as np

from stackarea.series import SeriesData, StackedBand


def compute_stack(series: SeriesData) -> list[StackedBand]:
    """Stack metrics bottom-up in metric order.

    ``band[k].y0`` is the sum of ``band[0..k-1].y`` at every sample index.
    """
    if series.metric_count == 0:
        return []
    values = series.y.astype(np.float64, copy=False)
    totals = np.cumsum(values, axis=0)
    baselines = np.zeros_like(values)
    baselines[1:] = totals[:-1]
    return [
        StackedBand(x=series.x[k].copy(), y0=baselines[k].copy(), y=values[k].copy())
        for k in range(series.metric_count)
    ]


def top_totals(bands: list[StackedBand]) -> np.ndarray:
    if not bands:
        return np.zeros(0, dtype=np.float64)
    return bands[-1].top


def band_total(bands: list[StackedBand], index: int) -> float:
    if not bands:
        return 0.0
    top = bands[-1]
    return float(top.y0[index] + top.y[index])
