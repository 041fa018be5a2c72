from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Sequence

import numpy as np

from stackarea.adapters import normalize_series, normalize_snapshots
from stackarea.compile import compile_full_rewrite_batch, compile_replace_rect_batch
from stackarea.defaults import (
    DEFAULT_HEIGHT,
    DEFAULT_WIDTH,
    INFO_EVENTS_DY,
    INFO_METRIC_DOT_RADIUS,
    INFO_METRIC_TEXT_DX,
    INFO_METRICS_COLUMN_PAD,
    INFO_METRICS_PER_COLUMN,
    INFO_METRICS_ROW_DY,
    INFO_METRICS_X,
    INFO_PANEL_Y,
    INFO_TOTAL_DY,
    MIN_CONTAINER_WIDTH,
    SCANNER_OVERHANG,
    TIME_AXIS_OFFSET,
    TIME_AXIS_TICK_COUNT,
)
from stackarea.errors import SnapshotAlignmentError, StackAreaStateError
from stackarea.formatting import format_time_tick
from stackarea.host import ChartHost, PointerEvent
from stackarea.raster import (
    LayerCache,
    blit,
    draw_disc,
    draw_hline,
    draw_polyline,
    draw_text,
    draw_vline,
    fill_between,
    new_canvas,
    text_size,
)
from stackarea.resolver import closest_pixel
from stackarea.scales import LinearScale, Palette, TimeScale, time_domain, value_domain
from stackarea.selection import InfoPanelState, SelectionState, SelectionSynchronizer, metric_label
from stackarea.series import Margin, SeriesData, Snapshot, StackAreaStyle, StackedBand
from stackarea.stack import compute_stack
from stackarea.surface import WriteBatch
from stackarea.transition import Transition


LOGGER = logging.getLogger(__name__)

AXIS_TICK_LEN = 6
AXIS_LABEL_PAD = 3


class StackArea:
    """Stacked-area time-series chart with a pointer-driven scanner.

    Configure with the ``set_*`` methods, then call :meth:`render` once.
    :meth:`update` re-measures the host container and re-lays out the chart;
    pointer events select the nearest sample and refresh the info panel.
    """

    def __init__(
        self,
        host: ChartHost,
        *,
        style: StackAreaStyle | None = None,
        strict_alignment: bool = False,
    ) -> None:
        self._host = host
        self.style = style or StackAreaStyle()
        self.strict_alignment = strict_alignment

        self._series = SeriesData.empty()
        self._metrics: tuple[str, ...] = ()
        self._snapshots: tuple[Snapshot, ...] = ()
        self._colors: tuple[Any, ...] = ()
        self._palette = Palette((), fallback=self.style.fallback_series_color)
        self._width = DEFAULT_WIDTH
        self._height = DEFAULT_HEIGHT
        self._margin = Margin()

        self._rendered = False
        self._updates = 0
        self._bands: list[StackedBand] = []
        self._time = TimeScale()
        self._y = LinearScale()
        self._sync: SelectionSynchronizer | None = None
        self._legend_positions: list[tuple[int, int]] = []
        self._tick_values = np.zeros(0, dtype=np.float64)
        self._axis_transition = Transition.settled(np.zeros(0))
        self._events_transition = Transition.settled(np.zeros(0))
        self._cache = LayerCache()
        self.available_width = 0
        self.available_height = 0

    # configuration

    @property
    def data(self) -> SeriesData:
        return self._series

    @property
    def metrics(self) -> tuple[str, ...]:
        return self._metrics

    @property
    def snapshots(self) -> tuple[Snapshot, ...]:
        return self._snapshots

    @property
    def colors(self) -> tuple[Any, ...]:
        return self._colors

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def margin(self) -> Margin:
        return self._margin

    def set_data(self, data: Any, *, x: Any = None) -> "StackArea":
        self._require_unrendered("data")
        self._series = normalize_series(data, x=x)
        return self

    def set_metrics(self, metrics: Sequence[str]) -> "StackArea":
        self._require_unrendered("metrics")
        self._metrics = tuple(str(m) for m in metrics)
        return self

    def set_snapshots(self, snapshots: Any) -> "StackArea":
        self._require_unrendered("snapshots")
        self._snapshots = normalize_snapshots(snapshots)
        return self

    def set_colors(self, colors: Sequence[Any]) -> "StackArea":
        self._require_unrendered("colors")
        self._palette = Palette(colors, fallback=self.style.fallback_series_color)
        self._colors = tuple(colors)
        return self

    def set_width(self, width: int) -> "StackArea":
        if width <= 0:
            raise ValueError("width must be > 0")
        self._width = int(width)
        return self

    def set_height(self, height: int) -> "StackArea":
        if height <= 0:
            raise ValueError("height must be > 0")
        self._height = int(height)
        return self

    def set_margin(self, margin: Margin | Mapping[str, Any]) -> "StackArea":
        self._margin = Margin.coerce(margin)
        return self

    def _require_unrendered(self, option: str) -> None:
        if self._rendered:
            raise StackAreaStateError(f"{option} cannot change after render()")

    # derived state

    @property
    def bands(self) -> list[StackedBand]:
        return list(self._bands)

    @property
    def time_scale(self) -> TimeScale:
        return self._time

    @property
    def value_scale(self) -> LinearScale:
        return self._y

    @property
    def events(self) -> tuple[Snapshot, ...]:
        return self._sync.events if self._sync is not None else ()

    @property
    def info(self) -> InfoPanelState:
        return self._synchronizer().info

    @property
    def selection_state(self) -> SelectionState:
        if self._sync is None:
            return SelectionState.UNSELECTED
        return self._sync.state

    def color(self, index: int) -> tuple[int, int, int, int]:
        return self._palette.color(index)

    def event_tick_lengths(self) -> list[int]:
        return self._synchronizer().event_tick_lengths()

    def event_tick_positions(self) -> np.ndarray:
        return self._events_transition.value()

    def axis_tick_values(self) -> np.ndarray:
        return self._tick_values.copy()

    def axis_tick_positions(self) -> np.ndarray:
        return self._axis_transition.value()

    def legend_positions(self) -> list[tuple[int, int]]:
        return list(self._legend_positions)

    @property
    def transitioning(self) -> bool:
        return not (self._axis_transition.done and self._events_transition.done)

    # lifecycle

    def render(self) -> "StackArea":
        if self._rendered:
            raise StackAreaStateError("render() may only be called once")
        self._check_alignment()

        self._bands = compute_stack(self._series)
        self._time = TimeScale(domain=time_domain(self._series))
        self._y = LinearScale(domain=value_domain(self._bands))
        self._sync = SelectionSynchronizer(
            series=self._series,
            metrics=self._metrics,
            snapshots=self._snapshots,
            bands=self._bands,
            time_scale=self._time,
        )
        self._legend_positions = self._layout_legend()
        self._rendered = True
        LOGGER.debug(
            "stack area rendered: metrics=%d samples=%d events=%d",
            self._series.metric_count,
            self._series.sample_count,
            len(self._sync.events),
        )
        self.update()
        return self

    def update(self) -> None:
        sync = self._synchronizer()
        measured = float(self._host.measure_width())
        self._width = int(round(measured)) if measured > MIN_CONTAINER_WIDTH else MIN_CONTAINER_WIDTH

        margin = self._margin
        previous_range = self._time.range
        first = self._updates == 0
        self.available_width = self._width - margin.left - margin.right
        self.available_height = self._height - margin.top - margin.bottom

        self._time.set_range(0, self.available_width)
        self._y.set_range(self.available_height, 0)

        # Entering positions start from the previous range so they glide into place.
        old_time = TimeScale(domain=self._time.domain, range=previous_range)
        self._tick_values = self._time.ticks(TIME_AXIS_TICK_COUNT) if not self._series.is_empty() else np.zeros(0)
        event_times = np.asarray([event.d for event in sync.events], dtype=np.float64)
        if first:
            self._axis_transition = Transition.settled(self._time(self._tick_values))
            self._events_transition = Transition.settled(self._time(event_times))
        else:
            self._axis_transition = Transition(start=old_time(self._tick_values), end=self._time(self._tick_values))
            self._events_transition = Transition(start=old_time(event_times), end=self._time(event_times))

        sync.rescan()
        if sync.state is SelectionState.UNSELECTED and self._series.sample_count > 0:
            last = self._series.sample_count - 1
            sync.select(last)
            LOGGER.debug("first update auto-selected sample %d", last)

        self._updates += 1
        self._host.present(self.compile_write_batch())

    def advance(self, dt: float) -> bool:
        """Step the update transition; returns True while it is still running."""
        if not self.transitioning:
            return False
        self._axis_transition.advance(dt)
        self._events_transition.advance(dt)
        self._host.present(self.compile_write_batch())
        return self.transitioning

    # interaction

    def select_snapshot(self, index: int) -> InfoPanelState:
        info = self._synchronizer().select(index)
        self._host.present(self.compile_selection_batch())
        return info

    def on_pointer_move(self, x: float, y: float = 0.0) -> int | None:
        """Select the sample nearest to canvas position ``x``."""
        sync = self._synchronizer()
        if self._series.is_empty():
            return None
        pixels = self._time(self._series.x[0])
        index = closest_pixel(np.atleast_1d(pixels), float(x) - self._margin.left)
        if index is None:
            return None
        if sync.state is SelectionState.SELECTED and sync.info.selected_index == index:
            return index
        self.select_snapshot(index)
        return index

    def dispatch_events(self, events: Iterable[PointerEvent]) -> int | None:
        """Handle a batch of pointer events; moves are coalesced to the latest one."""
        latest: PointerEvent | None = None
        for event in events:
            if event.event_type == "pointer_move":
                latest = event
        if latest is None:
            return None
        return self.on_pointer_move(latest.x, latest.y)

    # frames

    def to_rgba(self) -> np.ndarray:
        self._synchronizer()
        frame = new_canvas(self._width, self._height, color=self.style.background)
        blit(frame, self._static_layer())
        blit(frame, self._overlay_layer())
        return frame

    def compile_write_batch(self) -> WriteBatch:
        return compile_full_rewrite_batch(self.to_rgba())

    def compile_selection_batch(self) -> WriteBatch:
        """Patch covering the info panel, scanner and event ticks."""
        frame = self.to_rgba()
        rows = self._margin.top + max(0, self.available_height) + SCANNER_OVERHANG + 1
        return compile_replace_rect_batch(frame, 0, 0, self._width, min(rows, self._height))

    # internals

    def _synchronizer(self) -> SelectionSynchronizer:
        if self._sync is None:
            raise StackAreaStateError("render() must be called first")
        return self._sync

    def _check_alignment(self) -> None:
        if not self._snapshots or self._series.is_empty():
            return
        times = self._series.x[0]
        mismatched = [
            i for i, snapshot in enumerate(self._snapshots) if i >= times.size or snapshot.d != float(times[i])
        ]
        if len(self._snapshots) != times.size and not mismatched:
            mismatched = list(range(min(len(self._snapshots), times.size), max(len(self._snapshots), times.size)))
        if not mismatched:
            return
        message = (
            f"{len(mismatched)} snapshot(s) misaligned with samples "
            f"(snapshots={len(self._snapshots)} samples={times.size} first={mismatched[0]})"
        )
        if self.strict_alignment:
            raise SnapshotAlignmentError(message)
        LOGGER.warning("%s", message)

    def _layout_legend(self) -> list[tuple[int, int]]:
        positions: list[tuple[int, int]] = []
        prev_x = INFO_METRICS_X
        for i in range(self._series.metric_count):
            positions.append((prev_x, -1 + (i % INFO_METRICS_PER_COLUMN) * INFO_METRICS_ROW_DY))
            if i % INFO_METRICS_PER_COLUMN == INFO_METRICS_PER_COLUMN - 1:
                name_w, _ = text_size(metric_label(self._metrics, i), font_size_px=self.style.small_font_px)
                prev_x += name_w + INFO_METRICS_COLUMN_PAD
        return positions

    def _static_layer(self) -> np.ndarray:
        tick_px = self._axis_transition.value()
        key = (
            self._width,
            self._height,
            self._margin,
            self._time.range,
            self._y.range,
            tuple(np.round(tick_px, 3).tolist()),
            self.style,
        )
        cached = self._cache.static(key)
        if cached is not None:
            return cached

        layer = new_canvas(self._width, self._height)
        ox, oy = self._margin.left, self._margin.top
        # Reverse order keeps the first metric painted last, at the bottom of the stack.
        for k in reversed(range(len(self._bands))):
            band = self._bands[k]
            xs = ox + np.atleast_1d(self._time(band.x))
            fill_between(
                layer,
                xs,
                oy + np.atleast_1d(self._y(band.top)),
                oy + np.atleast_1d(self._y(band.y0)),
                self._palette.color(k),
            )
        for band in self._bands:
            xs = ox + np.atleast_1d(self._time(band.x))
            draw_polyline(layer, xs, oy + np.atleast_1d(self._y(band.top)), self.style.outline_color)

        axis_y = oy + self.available_height + self._margin.bottom - TIME_AXIS_OFFSET
        draw_hline(layer, ox, ox + self.available_width, axis_y, self.style.axis_color)
        for value, px in zip(self._tick_values.tolist(), tick_px.tolist()):
            tx = ox + int(round(px))
            draw_vline(layer, tx, axis_y, axis_y + AXIS_TICK_LEN, self.style.axis_color)
            label = format_time_tick(value)
            label_w, _ = text_size(label, font_size_px=self.style.small_font_px)
            draw_text(
                layer,
                tx - label_w // 2,
                axis_y + AXIS_TICK_LEN + AXIS_LABEL_PAD,
                label,
                self.style.text_color,
                font_size_px=self.style.small_font_px,
            )
        self._cache.store_static(key, layer)
        return layer

    def _overlay_layer(self) -> np.ndarray:
        sync = self._synchronizer()
        info = sync.info
        style = self.style
        layer = new_canvas(self._width, self._height)
        ox, oy = self._margin.left, self._margin.top
        bottom = oy + self.available_height + SCANNER_OVERHANG

        if info.scanner_x is not None:
            draw_vline(layer, ox + int(round(info.scanner_x)), oy, bottom, style.scanner_color)

        for px, length in zip(self._events_transition.value().tolist(), sync.event_tick_lengths()):
            draw_vline(layer, ox + int(round(px)), bottom - length, bottom, style.event_tick_color)

        info_y = oy + INFO_PANEL_Y
        draw_text(layer, ox, info_y, info.date_text, style.text_color, font_size_px=style.font_px, embolden_px=2, anchor="baseline")
        draw_text(layer, ox, info_y + INFO_TOTAL_DY, info.total_text, style.text_color, font_size_px=style.small_font_px, anchor="baseline")
        draw_text(layer, ox, info_y + INFO_EVENTS_DY, info.event_text, style.text_color, font_size_px=style.small_font_px, anchor="baseline")
        for i, (lx, ly) in enumerate(self._legend_positions):
            x = ox + lx
            y = info_y + ly
            draw_disc(layer, x, y - INFO_METRIC_DOT_RADIUS, INFO_METRIC_DOT_RADIUS, self._palette.color(i))
            text = info.metric_texts[i] if i < len(info.metric_texts) else ""
            draw_text(
                layer,
                x + INFO_METRIC_TEXT_DX,
                y,
                text,
                style.text_color,
                font_size_px=style.small_font_px,
                anchor="baseline",
            )
        return layer
