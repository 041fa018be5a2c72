from __future__ import annotations

from typing import Any, Mapping, Sequence

from stackarea.defaults import DEFAULT_HEIGHT, DEFAULT_WIDTH
from stackarea.host import ChartHost, SurfaceHost
from stackarea.series import Margin, StackAreaStyle
from stackarea.widget import StackArea


def stack_area(
    host: ChartHost | None = None,
    *,
    data: Any = None,
    metrics: Sequence[str] = (),
    snapshots: Any = None,
    colors: Sequence[Any] = (),
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    margin: Margin | Mapping[str, Any] | None = None,
    style: StackAreaStyle | None = None,
    strict_alignment: bool = False,
) -> StackArea:
    """Build a configured, not yet rendered chart.

    Without a ``host`` the chart draws into an in-memory surface whose
    container width equals ``width``.
    """
    if width <= 0:
        raise ValueError("width must be > 0")
    if height <= 0:
        raise ValueError("height must be > 0")
    if host is None:
        host = SurfaceHost(container_width=width, height=height)
    chart = StackArea(host, style=style, strict_alignment=strict_alignment)
    chart.set_width(width).set_height(height).set_metrics(metrics).set_colors(colors)
    if margin is not None:
        chart.set_margin(margin)
    if data is not None:
        chart.set_data(data)
    if snapshots is not None:
        chart.set_snapshots(snapshots)
    return chart
