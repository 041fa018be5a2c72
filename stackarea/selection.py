from __future__ import annotations

from dataclasses import dataclass, field
import enum
import logging
from typing import Sequence

from stackarea.defaults import EVENT_TICK_HIGHLIGHT_LENGTH, EVENT_TICK_LENGTH
from stackarea.formatting import format_long_date, format_value
from stackarea.scales import TimeScale
from stackarea.series import SeriesData, Snapshot, StackedBand
from stackarea.stack import band_total


LOGGER = logging.getLogger(__name__)


class SelectionState(enum.Enum):
    UNSELECTED = "unselected"
    SELECTED = "selected"


@dataclass
class InfoPanelState:
    """Text and marker state shown for the active sample."""

    date_text: str = ""
    total_text: str = ""
    event_text: str = ""
    metric_texts: list[str] = field(default_factory=list)
    scanner_x: float | None = None
    highlighted_event: int | None = None
    selected_index: int | None = None


def metric_label(metrics: Sequence[str], index: int) -> str:
    if index < len(metrics) and metrics[index].strip():
        return metrics[index]
    return f"series {index + 1}"


def filter_events(snapshots: Sequence[Snapshot]) -> tuple[Snapshot, ...]:
    return tuple(snapshot for snapshot in snapshots if snapshot.has_events)


class SelectionSynchronizer:
    """Keeps the info panel, scanner and event ticks in step with one sample index."""

    def __init__(
        self,
        *,
        series: SeriesData,
        metrics: Sequence[str],
        snapshots: Sequence[Snapshot],
        bands: Sequence[StackedBand],
        time_scale: TimeScale,
    ) -> None:
        self._series = series
        self._metrics = tuple(metrics)
        self._snapshots = tuple(snapshots)
        self._bands = list(bands)
        self._time = time_scale
        self.events = filter_events(self._snapshots)
        # Exact timestamp matches; later entries win on duplicates.
        self._snapshot_by_time = {snapshot.d: i for i, snapshot in enumerate(self._snapshots)}
        self._event_by_time = {event.d: i for i, event in enumerate(self.events)}
        self.state = SelectionState.UNSELECTED
        self.info = InfoPanelState(metric_texts=[metric_label(self._metrics, i) for i in range(series.metric_count)])

    def select(self, index: int) -> InfoPanelState:
        sample_count = self._series.sample_count
        if index < 0 or index >= sample_count:
            raise IndexError(f"sample index out of range: {index} (samples={sample_count})")
        info = self.info
        data_x = float(self._series.x[0, index])
        info.selected_index = index
        info.scanner_x = float(self._time(data_x))

        info.metric_texts = [
            f"{metric_label(self._metrics, m)}: {self._display_value(m, index)}"
            for m in range(self._series.metric_count)
        ]
        info.date_text = format_long_date(data_x)

        snapshot_index = self._snapshot_by_time.get(data_x)
        formatted_total: str | None = None
        if snapshot_index is None:
            LOGGER.debug("no snapshot at %s; keeping previous event text", data_x)
        else:
            snapshot = self._snapshots[snapshot_index]
            info.event_text = ", ".join(snapshot.e)
            formatted_total = snapshot.fy
        total = formatted_total if formatted_total else format_value(band_total(self._bands, index))
        info.total_text = f"Total: {total}"

        info.highlighted_event = self._event_by_time.get(data_x)
        self.state = SelectionState.SELECTED
        return info

    def rescan(self) -> None:
        """Re-project the scanner after the time scale was re-ranged."""
        if self.info.selected_index is None:
            return
        data_x = float(self._series.x[0, self.info.selected_index])
        self.info.scanner_x = float(self._time(data_x))

    def event_tick_lengths(self) -> list[int]:
        return [
            EVENT_TICK_HIGHLIGHT_LENGTH if i == self.info.highlighted_event else EVENT_TICK_LENGTH
            for i in range(len(self.events))
        ]

    def _display_value(self, metric: int, index: int) -> str:
        sample = self._series.sample(metric, index)
        if sample.fy:
            return sample.fy
        return format_value(sample.y)
