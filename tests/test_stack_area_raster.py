from __future__ import annotations

import unittest

import numpy as np
import torch

from stackarea.compile import compile_full_rewrite_batch, compile_replace_rect_batch
from stackarea.raster import LayerCache, blit, draw_disc, draw_polyline, draw_text, fill_between, new_canvas, text_size
from stackarea.surface import FrameSurface, FullRewrite, ReplaceRect, WriteBatch
from stackarea.transition import Transition, ease_cubic_in_out


RED = (255, 0, 0, 255)


class RasterTests(unittest.TestCase):
    def test_fill_between_covers_only_the_band(self) -> None:
        canvas = new_canvas(10, 10)
        fill_between(canvas, np.asarray([0.0, 9.0]), np.asarray([2.0, 2.0]), np.asarray([7.0, 7.0]), RED)
        self.assertEqual(tuple(canvas[4, 5]), RED)
        self.assertEqual(int(canvas[1, 5, 3]), 0)
        self.assertEqual(int(canvas[8, 5, 3]), 0)

    def test_fill_between_interpolates_sloped_edges(self) -> None:
        canvas = new_canvas(11, 11)
        fill_between(canvas, np.asarray([0.0, 10.0]), np.asarray([0.0, 10.0]), np.asarray([10.0, 10.0]), RED)
        self.assertEqual(tuple(canvas[9, 2]), RED)
        self.assertEqual(int(canvas[1, 8, 3]), 0)

    def test_polyline_connects_points(self) -> None:
        canvas = new_canvas(10, 10)
        draw_polyline(canvas, np.asarray([0.0, 9.0]), np.asarray([0.0, 9.0]), RED)
        for i in range(10):
            self.assertEqual(tuple(canvas[i, i]), RED)

    def test_disc_is_round(self) -> None:
        canvas = new_canvas(11, 11)
        draw_disc(canvas, 5, 5, 4, RED)
        self.assertEqual(tuple(canvas[5, 5]), RED)
        self.assertEqual(tuple(canvas[5, 9]), RED)
        self.assertEqual(int(canvas[1, 1, 3]), 0)

    def test_text_draws_antialiased_glyphs(self) -> None:
        canvas = new_canvas(120, 30)
        draw_text(canvas, 2, 2, "Total: 12", (0, 0, 0, 255), font_size_px=14.0)
        self.assertTrue(np.any(canvas[:, :, 3] > 0))
        self.assertEqual(int(canvas[29, 119, 3]), 0)
        width, height = text_size("Total: 12", font_size_px=14.0)
        self.assertGreater(width, 0)
        self.assertGreater(height, 0)

    def test_blit_composites_over_background(self) -> None:
        dst = new_canvas(4, 4, color=(255, 255, 255, 255))
        src = new_canvas(2, 2, color=(0, 0, 0, 255))
        blit(dst, src, 1, 1)
        np.testing.assert_array_equal(dst[1, 1], [0, 0, 0, 255])
        np.testing.assert_array_equal(dst[0, 0], [255, 255, 255, 255])

    def test_layer_cache_hits_on_equal_key(self) -> None:
        cache = LayerCache()
        layer = new_canvas(2, 2)
        cache.store_static(("k", 1), layer)
        self.assertIs(cache.static(("k", 1)), layer)
        self.assertIsNone(cache.static(("k", 2)))
        cache.store_static(("k", 2), new_canvas(3, 3))
        self.assertIsNone(cache.static(("k", 1)))


class FrameSurfaceTests(unittest.TestCase):
    def test_full_rewrite_replaces_and_resizes(self) -> None:
        surface = FrameSurface(height=2, width=2)
        frame = new_canvas(3, 4, color=(1, 2, 3, 255))
        event = surface.submit_write_batch(compile_full_rewrite_batch(frame))
        self.assertEqual(event.revision, 1)
        self.assertEqual(surface.shape, (4, 3))
        np.testing.assert_array_equal(surface.read_snapshot().numpy(), frame)

    def test_replace_rect_patches_region(self) -> None:
        surface = FrameSurface(height=4, width=4)
        frame = new_canvas(4, 4, color=(9, 9, 9, 255))
        surface.submit_write_batch(compile_replace_rect_batch(frame, 1, 1, 10, 2))
        snapshot = surface.read_snapshot().numpy()
        np.testing.assert_array_equal(snapshot[1, 3], [9, 9, 9, 255])
        np.testing.assert_array_equal(snapshot[0, 0], [255, 255, 255, 255])
        np.testing.assert_array_equal(snapshot[3, 1], [255, 255, 255, 255])

    def test_out_of_bounds_rect_rejected_atomically(self) -> None:
        surface = FrameSurface(height=2, width=2)
        patch = torch.zeros((2, 2, 4), dtype=torch.uint8)
        batch = WriteBatch(
            [
                ReplaceRect(x=0, y=0, width=1, height=1, rect_h_w_4=patch[:1, :1]),
                ReplaceRect(x=1, y=1, width=2, height=2, rect_h_w_4=patch),
            ]
        )
        with self.assertRaises(ValueError):
            surface.submit_write_batch(batch)
        self.assertEqual(surface.revision, 0)
        np.testing.assert_array_equal(surface.read_snapshot().numpy()[0, 0], [255, 255, 255, 255])

    def test_invalid_channels_become_magenta(self) -> None:
        surface = FrameSurface(height=1, width=2)
        tensor = torch.tensor([[[0.0, 0.0, 0.0, 255.0], [300.0, 0.0, 0.0, 255.0]]])
        with self.assertLogs("stackarea.surface", level="WARNING"):
            surface.submit_write_batch(WriteBatch([FullRewrite(tensor)]))
        np.testing.assert_array_equal(surface.read_snapshot().numpy()[0, 1], [255, 0, 255, 255])

    def test_empty_batch_rejected(self) -> None:
        with self.assertRaises(ValueError):
            FrameSurface(height=1, width=1).submit_write_batch(WriteBatch([]))

    def test_rect_outside_frame_rejected(self) -> None:
        with self.assertRaises(ValueError):
            compile_replace_rect_batch(new_canvas(4, 4), 10, 0, 2, 2)
        with self.assertRaises(ValueError):
            compile_full_rewrite_batch(np.zeros((2, 2, 3), dtype=np.uint8))


class TransitionTests(unittest.TestCase):
    def test_easing_endpoints(self) -> None:
        self.assertEqual(ease_cubic_in_out(0.0), 0.0)
        self.assertEqual(ease_cubic_in_out(0.5), 0.5)
        self.assertEqual(ease_cubic_in_out(1.0), 1.0)

    def test_advance_moves_towards_end(self) -> None:
        transition = Transition(start=np.asarray([0.0]), end=np.asarray([100.0]), duration_s=1.0)
        self.assertFalse(transition.done)
        mid = transition.advance(0.5)
        np.testing.assert_allclose(mid, [50.0])
        np.testing.assert_allclose(transition.advance(5.0), [100.0])
        self.assertTrue(transition.done)

    def test_shape_change_snaps_to_end(self) -> None:
        transition = Transition(start=np.zeros(2), end=np.asarray([1.0, 2.0, 3.0]))
        self.assertTrue(transition.done)
        np.testing.assert_array_equal(transition.value(), [1.0, 2.0, 3.0])


if __name__ == "__main__":
    unittest.main()
