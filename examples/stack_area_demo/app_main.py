from __future__ import annotations

import logging
import os
from pathlib import Path

import numpy as np
from PIL import Image

from stackarea import SurfaceHost, pointer_move, stack_area
from stackarea.scales import DAY_MS


LOGGER = logging.getLogger(__name__)

METRICS = ("Blocker", "Critical", "Major", "Minor", "Info")
COLORS = ("#d4333f", "#ed7d20", "#eabe06", "#4b9fd5", "#b4b4b4")


class StackAreaDemoApp:
    """Sweeps the scanner across a synthetic issue history."""

    def __init__(self) -> None:
        self._samples = max(2, int(os.getenv("STACKAREA_DEMO_SAMPLES", "30")))
        self._rng = np.random.default_rng(int(os.getenv("STACKAREA_DEMO_SEED", "7")))
        self._sweep_px_per_s = float(os.getenv("STACKAREA_DEMO_SWEEP_PX_PER_S", "120"))
        self._pointer_x = 0.0
        self._chart = None

    def init(self, host: SurfaceHost) -> None:
        start = 1_760_000_000_000.0
        times = start + np.arange(self._samples, dtype=np.float64) * DAY_MS
        values = np.cumsum(self._rng.integers(0, 4, size=(len(METRICS), self._samples)), axis=1)
        snapshots = [
            {"d": t, "e": [f"v{i // 7 + 1}.0"] if i % 7 == 6 else []}
            for i, t in enumerate(times.tolist())
        ]
        self._chart = stack_area(
            host,
            metrics=METRICS,
            snapshots=snapshots,
            colors=COLORS,
            height=int(os.getenv("STACKAREA_DEMO_HEIGHT", "150")),
        )
        self._chart.set_data(values, x=times)
        self._chart.render()

    def loop(self, host: SurfaceHost, dt: float) -> None:
        chart = self._chart
        if chart is None:
            return None
        chart.advance(dt)
        self._pointer_x = (self._pointer_x + self._sweep_px_per_s * max(0.0, dt)) % max(1, chart.width)
        chart.dispatch_events([pointer_move(self._pointer_x)])
        return None

    def stop(self, host: SurfaceHost) -> None:
        return None


def create() -> StackAreaDemoApp:
    return StackAreaDemoApp()


def main() -> None:
    logging.basicConfig(level=os.getenv("STACKAREA_DEMO_LOG_LEVEL", "INFO"))
    width = float(os.getenv("STACKAREA_DEMO_WIDTH", "480"))
    height = int(os.getenv("STACKAREA_DEMO_HEIGHT", "150"))
    host = SurfaceHost(container_width=width, height=height)
    app = create()
    app.init(host)
    for _ in range(int(os.getenv("STACKAREA_DEMO_FRAMES", "60"))):
        app.loop(host, 1.0 / 30.0)
    app.stop(host)

    out = Path(os.getenv("STACKAREA_DEMO_OUTPUT", "stack_area_demo.png"))
    Image.fromarray(host.surface.read_snapshot().numpy()).save(out)
    LOGGER.info("wrote %s after %d commits", out, host.presented)


if __name__ == "__main__":
    main()
