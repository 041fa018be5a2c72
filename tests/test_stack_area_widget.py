from __future__ import annotations

from datetime import datetime, timezone
import unittest

import numpy as np

from stackarea import (
    Margin,
    PointerEvent,
    SelectionState,
    SnapshotAlignmentError,
    StackArea,
    StackAreaDataError,
    StackAreaStateError,
    SurfaceHost,
    compute_stack,
    pointer_move,
    stack_area,
)
from stackarea.adapters.normalize import normalize_series, normalize_snapshots
from stackarea.formatting import format_long_date
from stackarea.scales import DAY_MS, TimeScale, time_domain
from stackarea.selection import SelectionSynchronizer
from stackarea.surface import FullRewrite, ReplaceRect, WriteBatch


class RecordingHost(SurfaceHost):
    def __init__(self, container_width: float = 350, height: int = 150) -> None:
        super().__init__(container_width=container_width, height=height)
        self.batches: list[WriteBatch] = []

    def present(self, batch: WriteBatch) -> None:
        self.batches.append(batch)
        super().present(batch)


def _daily(values: list[list[float]]) -> list[list[tuple[float, float]]]:
    return [[(i * DAY_MS, v) for i, v in enumerate(row)] for row in values]


def _snapshots(count: int, events: dict[int, list[str]] | None = None) -> list[dict]:
    events = events or {}
    return [{"d": i * DAY_MS, "e": events.get(i, [])} for i in range(count)]


def _synchronizer(data, snapshots, metrics=("a", "b")) -> SelectionSynchronizer:
    series = normalize_series(data)
    scale = TimeScale(domain=time_domain(series), range=(0.0, 300.0))
    return SelectionSynchronizer(
        series=series,
        metrics=metrics,
        snapshots=normalize_snapshots(snapshots),
        bands=compute_stack(series),
        time_scale=scale,
    )


class SelectionSynchronizerTests(unittest.TestCase):
    def test_total_sums_bands_without_formatted_value(self) -> None:
        sync = _synchronizer(
            [[{"x": 100, "y": 5}], [{"x": 100, "y": 7}]],
            [{"d": 100, "e": []}],
        )
        info = sync.select(0)
        self.assertEqual(info.total_text, "Total: 12")
        self.assertIs(sync.state, SelectionState.SELECTED)

    def test_total_prefers_snapshot_formatted_value(self) -> None:
        sync = _synchronizer(
            [[{"x": 100, "y": 500}], [{"x": 100, "y": 700}]],
            [{"d": 100, "e": ["v2"], "fy": "1.2k"}],
        )
        info = sync.select(0)
        self.assertEqual(info.total_text, "Total: 1.2k")
        self.assertEqual(info.event_text, "v2")

    def test_metric_text_prefers_formatted_sample_value(self) -> None:
        sync = _synchronizer([[(0, 1500, "1.5k")], [(0, 3)]], [{"d": 0}], metrics=("lines", ""))
        info = sync.select(0)
        self.assertEqual(info.metric_texts, ["lines: 1.5k", "series 2: 3"])

    def test_missing_snapshot_keeps_previous_event_text(self) -> None:
        sync = _synchronizer(
            _daily([[1, 2, 3], [4, 5, 6]]),
            [{"d": 0, "e": ["alpha"]}, {"d": DAY_MS, "e": ["beta"]}],
        )
        sync.select(0)
        info = sync.select(2)
        self.assertEqual(info.event_text, "alpha")
        self.assertEqual(info.total_text, "Total: 9")
        self.assertIsNone(info.highlighted_event)
        self.assertEqual(info.scanner_x, 300.0)

    def test_event_ticks_extend_only_the_selected_event(self) -> None:
        sync = _synchronizer(
            _daily([[1] * 7, [2] * 7]),
            _snapshots(7, {2: ["v1"], 5: ["v2", "release"]}),
        )
        self.assertEqual(len(sync.events), 2)
        sync.select(0)
        self.assertEqual(sync.event_tick_lengths(), [8, 8])
        sync.select(5)
        self.assertEqual(sync.event_tick_lengths(), [8, 12])
        self.assertEqual(sync.info.event_text, "v2, release")
        sync.select(2)
        self.assertEqual(sync.event_tick_lengths(), [12, 8])

    def test_out_of_range_index_rejected(self) -> None:
        sync = _synchronizer(_daily([[1, 2]]), [], metrics=("a",))
        with self.assertRaises(IndexError):
            sync.select(2)
        self.assertIs(sync.state, SelectionState.UNSELECTED)


class StackAreaLifecycleTests(unittest.TestCase):
    def _chart(self, values, *, host=None, snapshots=None, **options) -> StackArea:
        host = host or RecordingHost()
        chart = StackArea(host, strict_alignment=options.pop("strict_alignment", False))
        chart.set_data(_daily(values)).set_metrics(options.pop("metrics", ["a", "b"]))
        chart.set_colors(options.pop("colors", ["#ff0000", "#0000ff"]))
        if "margin" in options:
            chart.set_margin(options.pop("margin"))
        if snapshots is not None:
            chart.set_snapshots(snapshots)
        return chart

    def test_first_update_selects_last_sample(self) -> None:
        chart = self._chart([[1, 2, 3, 4], [10, 20, 30, 40]])
        self.assertIs(chart.selection_state, SelectionState.UNSELECTED)
        chart.render()
        info = chart.info
        self.assertIs(chart.selection_state, SelectionState.SELECTED)
        self.assertEqual(info.selected_index, 3)
        self.assertEqual(info.metric_texts, ["a: 4", "b: 40"])
        self.assertEqual(info.total_text, "Total: 44")
        self.assertEqual(info.date_text, format_long_date(3 * DAY_MS))

    def test_render_presents_one_full_frame(self) -> None:
        host = RecordingHost()
        chart = self._chart([[1, 2], [3, 4]], host=host).render()
        self.assertEqual(len(host.batches), 1)
        self.assertIsInstance(host.batches[0].operations[0], FullRewrite)
        np.testing.assert_array_equal(host.surface.read_snapshot().numpy(), chart.to_rgba())

    def test_resize_rescales_time_axis(self) -> None:
        host = RecordingHost(container_width=350)
        chart = self._chart([[1, 2, 3], [1, 2, 3]], host=host, margin={"left": 0, "right": 0}).render()
        self.assertEqual(chart.time_scale(DAY_MS), 175.0)
        host.resize(700)
        chart.update()
        self.assertEqual(chart.width, 700)
        self.assertEqual(chart.time_scale(DAY_MS), 350.0)
        self.assertEqual(host.surface.shape, (150, 700))
        self.assertEqual(chart.info.scanner_x, 700.0)

    def test_narrow_container_clamps_to_minimum_width(self) -> None:
        host = RecordingHost(container_width=40)
        chart = self._chart([[1, 2]], host=host, metrics=["a"]).render()
        self.assertEqual(chart.width, 100)
        self.assertEqual(chart.available_width, 50)

    def test_update_transition_settles_on_new_positions(self) -> None:
        host = RecordingHost(container_width=350)
        chart = self._chart([[1] * 10, [2] * 10], host=host).render()
        self.assertFalse(chart.transitioning)
        host.resize(700)
        chart.update()
        self.assertTrue(chart.transitioning)
        self.assertTrue(chart.advance(0.1))
        self.assertFalse(chart.advance(1.0))
        np.testing.assert_allclose(chart.axis_tick_positions(), chart.time_scale(chart.axis_tick_values()))
        self.assertFalse(chart.advance(0.1))

    def test_pointer_move_selects_nearest_sample(self) -> None:
        host = RecordingHost()
        chart = self._chart([[1, 2, 3, 4], [1, 2, 3, 4]], host=host).render()
        # Default margins leave 300px of plot; samples sit at 0, 100, 200, 300.
        self.assertEqual(chart.on_pointer_move(40 + 110), 1)
        self.assertEqual(chart.info.selected_index, 1)
        patch = host.batches[-1].operations[0]
        self.assertIsInstance(patch, ReplaceRect)
        self.assertEqual((patch.x, patch.y, patch.width, patch.height), (0, 0, 350, 80 + 30 + 11))

    def test_pointer_on_current_sample_skips_present(self) -> None:
        host = RecordingHost()
        chart = self._chart([[1, 2, 3, 4], [1, 2, 3, 4]], host=host).render()
        presented = len(host.batches)
        self.assertEqual(chart.on_pointer_move(40 + 295), 3)
        self.assertEqual(len(host.batches), presented)

    def test_dispatch_coalesces_pointer_moves(self) -> None:
        host = RecordingHost()
        chart = self._chart([[1, 2, 3, 4], [1, 2, 3, 4]], host=host).render()
        presented = len(host.batches)
        events = [
            pointer_move(40 + 10),
            pointer_move(40 + 190),
            PointerEvent(event_type="pointer_down", x=40 + 10, y=5),
        ]
        self.assertEqual(chart.dispatch_events(events), 2)
        self.assertEqual(len(host.batches), presented + 1)
        self.assertIsNone(chart.dispatch_events([PointerEvent(event_type="pointer_up", x=0, y=0)]))

    def test_event_ticks_through_widget(self) -> None:
        chart = self._chart(
            [[1] * 7, [2] * 7],
            snapshots=_snapshots(7, {2: ["v1"], 5: ["v2"]}),
        ).render()
        self.assertEqual(len(chart.events), 2)
        self.assertEqual(chart.event_tick_lengths(), [8, 8])
        chart.select_snapshot(5)
        self.assertEqual(chart.event_tick_lengths(), [8, 12])
        np.testing.assert_allclose(chart.event_tick_positions(), [100.0, 250.0])

    def test_areas_are_painted_in_metric_colors(self) -> None:
        chart = self._chart([[5, 5, 5], [5, 5, 5]]).render()
        frame = chart.to_rgba()
        # Value domain is [0, 10] over 30px of plot height starting at row 80.
        np.testing.assert_array_equal(frame[102, 190, :3], [255, 0, 0])
        np.testing.assert_array_equal(frame[85, 190, :3], [0, 0, 255])
        self.assertTrue(np.all(frame[:, :, 3] == 255))

    def test_legend_wraps_after_three_entries(self) -> None:
        chart = self._chart([[1], [1], [1], [1]], metrics=["a", "b", "c", "d"], colors=["#000"]).render()
        positions = chart.legend_positions()
        self.assertEqual([p[1] for p in positions], [-1, 17, 35, -1])
        self.assertEqual(positions[0][0], 120)
        self.assertGreater(positions[3][0], 120 + 70)


class StackAreaEdgeCaseTests(unittest.TestCase):
    def test_update_and_pointer_require_render(self) -> None:
        chart = StackArea(RecordingHost())
        with self.assertRaises(StackAreaStateError):
            chart.update()
        with self.assertRaises(StackAreaStateError):
            chart.on_pointer_move(10)
        with self.assertRaises(StackAreaStateError):
            chart.to_rgba()

    def test_render_only_once(self) -> None:
        chart = StackArea(RecordingHost()).render()
        with self.assertRaises(StackAreaStateError):
            chart.render()

    def test_data_is_frozen_after_render(self) -> None:
        chart = StackArea(RecordingHost()).render()
        with self.assertRaises(StackAreaStateError):
            chart.set_data([[(0, 1)]])
        chart.set_height(200)
        chart.update()
        self.assertEqual(chart.to_rgba().shape, (200, 350, 4))

    def test_empty_chart_renders_without_selection(self) -> None:
        host = RecordingHost()
        chart = StackArea(host).render()
        self.assertIs(chart.selection_state, SelectionState.UNSELECTED)
        self.assertEqual(chart.to_rgba().shape, (150, 350, 4))
        self.assertIsNone(chart.on_pointer_move(100))

    def test_metrics_without_samples_stay_unselected(self) -> None:
        chart = StackArea(RecordingHost()).set_data([[], []]).set_metrics(["a", "b"]).render()
        self.assertIs(chart.selection_state, SelectionState.UNSELECTED)
        self.assertEqual(len(chart.bands), 2)
        self.assertEqual(chart.info.metric_texts, ["a", "b"])

    def test_misaligned_snapshots_warn_by_default(self) -> None:
        chart = StackArea(RecordingHost()).set_data(_daily([[1, 2]])).set_snapshots([{"d": 0}, {"d": 5}])
        with self.assertLogs("stackarea.widget", level="WARNING"):
            chart.render()

    def test_misaligned_snapshots_fail_in_strict_mode(self) -> None:
        chart = StackArea(RecordingHost(), strict_alignment=True)
        chart.set_data(_daily([[1, 2]])).set_snapshots([{"d": 0}, {"d": 5}])
        with self.assertRaises(SnapshotAlignmentError):
            chart.render()

    def test_setter_validation(self) -> None:
        chart = StackArea(RecordingHost())
        with self.assertRaises(ValueError):
            chart.set_width(0)
        with self.assertRaises(ValueError):
            chart.set_margin({"middle": 3})
        with self.assertRaises(ValueError):
            chart.set_margin({"top": -1})
        chart.set_margin({"top": 5})
        self.assertEqual(chart.margin, Margin(top=5, right=10, bottom=40, left=40))

    def test_factory_rejects_timestamps_beyond_calendar_range(self) -> None:
        with self.assertRaises(StackAreaDataError):
            stack_area(data=[[(0, 3), (1e15, 4)]], metrics=["a"])

    def test_chart_renders_near_calendar_limit(self) -> None:
        late = datetime(9998, 12, 31, tzinfo=timezone.utc).timestamp() * 1000.0
        chart = stack_area(data=[[(late - 300 * DAY_MS, 3), (late, 4)]], metrics=["a"]).render()
        self.assertEqual(chart.info.date_text, "December 31, 9998")
        self.assertGreater(chart.axis_tick_values().size, 0)

    def test_factory_builds_in_memory_host(self) -> None:
        chart = stack_area(data=_daily([[1, 2], [3, 4]]), metrics=["a", "b"], width=400).render()
        self.assertEqual(chart.width, 400)
        self.assertEqual(chart.info.total_text, "Total: 6")


if __name__ == "__main__":
    unittest.main()
