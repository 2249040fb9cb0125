from __future__ import annotations

import asyncio
import time
import unittest
from unittest import mock

import numpy as np

from cartesian_grid.errors import TransformError
from cartesian_grid.fonts import FontCache, FontSpec, default_font
from cartesian_grid.host import MoveEvents, Rect
from cartesian_grid.layers import GridLabelsLayer, GridLinesLayer, GridOverlay
from cartesian_grid.tiles import PixelBounds, Point, TileCoords


ORIGIN_TILE = TileCoords(0, 0, 6)


class FakeHost:
    def __init__(self) -> None:
        self.origin = (400.0, 300.0)
        self.container = Rect(0.0, 0.0, 800.0, 600.0)
        self.moves = MoveEvents()
        self.fail_tile_rect = False

    def pixel_bounds(self) -> PixelBounds:
        ox, oy = self.origin
        return PixelBounds(
            min=Point(int(-ox), int(-oy)),
            max=Point(int(self.container.width - ox), int(self.container.height - oy)),
        )

    def container_rect(self) -> Rect:
        return self.container

    def tile_rect(self, coords: TileCoords) -> Rect:
        if self.fail_tile_rect:
            raise RuntimeError("tile element detached")
        return Rect(self.origin[0] + 256.0 * coords.x, self.origin[1] + 256.0 * coords.y, 256.0, 256.0)

    def on_move(self, listener):
        return self.moves.subscribe(listener)

    def pan_to(self, x: float, y: float) -> None:
        self.origin = (x, y)
        self.moves.emit()


def _slow_default_font(spec: FontSpec):
    time.sleep(0.1)
    return default_font(spec)


class _Done:
    def __init__(self, expected: int = 1) -> None:
        self.calls: list = []
        self.expected = expected
        self.event = asyncio.Event()

    def __call__(self, error, surface) -> None:
        self.calls.append((error, surface))
        if len(self.calls) >= self.expected:
            self.event.set()

    async def wait(self) -> None:
        await asyncio.wait_for(self.event.wait(), timeout=10.0)


class GridLinesLayerTests(unittest.TestCase):
    def test_draw_is_deferred_to_next_loop_turn(self) -> None:
        async def scenario():
            layer = GridLinesLayer()
            done = _Done()
            surface = layer.create_tile(ORIGIN_TILE, done)
            drawn_synchronously = bool(surface.pixels[:, :, 3].any())
            calls_before = len(done.calls)
            await done.wait()
            return layer, surface, done, drawn_synchronously, calls_before

        layer, surface, done, drawn_synchronously, calls_before = asyncio.run(scenario())
        self.assertFalse(drawn_synchronously)
        self.assertEqual(calls_before, 0)
        self.assertEqual(done.calls, [(None, surface)])
        self.assertEqual(tuple(surface.pixels[0, 0]), (0, 0, 0, 255))
        self.assertEqual(layer.tiles.get(ORIGIN_TILE).state, "rendered")

    def test_evicted_tile_is_never_drawn(self) -> None:
        async def scenario():
            layer = GridLinesLayer()
            done = _Done()
            surface = layer.create_tile(ORIGIN_TILE, done)
            layer.evict_tile(ORIGIN_TILE)
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            return layer, surface, done

        layer, surface, done = asyncio.run(scenario())
        self.assertEqual(done.calls, [])
        self.assertFalse(surface.attached)
        self.assertFalse(surface.pixels.any())
        self.assertEqual(len(layer.tiles), 0)

    def test_draw_failure_is_reported_through_done(self) -> None:
        async def scenario():
            layer = GridLinesLayer()
            done = _Done()
            with mock.patch("cartesian_grid.layers.render_grid_tile", side_effect=TransformError("nan")):
                layer.create_tile(ORIGIN_TILE, done)
                await done.wait()
            return layer, done

        with self.assertLogs("cartesian_grid.layers", level="WARNING"):
            layer, done = asyncio.run(scenario())
        self.assertIsInstance(done.calls[0][0], TransformError)
        self.assertEqual(len(layer.tiles), 0)


class GridLabelsLayerTests(unittest.TestCase):
    def test_create_requires_attached_host(self) -> None:
        layer = GridLabelsLayer(fonts=FontCache(loader=default_font))
        with self.assertRaises(RuntimeError):
            layer.create_tile(ORIGIN_TILE, _Done())

    def test_tile_renders_after_font_is_ready(self) -> None:
        async def scenario():
            host = FakeHost()
            layer = GridLabelsLayer(fonts=FontCache(loader=default_font))
            layer.attach(host)
            done = _Done()
            surface = layer.create_tile(ORIGIN_TILE, done)
            await done.wait()
            return layer, surface, done

        layer, surface, done = asyncio.run(scenario())
        self.assertEqual(done.calls, [(None, surface)])
        self.assertTrue(layer.fonts.is_ready(layer.font_spec))
        self.assertGreater(int(surface.pixels[:, :, 3].max()), 0)
        self.assertEqual(layer.tiles.get(ORIGIN_TILE).state, "rendered")

    def test_move_redraws_loaded_tiles_in_place(self) -> None:
        async def scenario():
            host = FakeHost()
            layer = GridLabelsLayer(fonts=FontCache(loader=default_font))
            layer.attach(host)
            done = _Done()
            surface = layer.create_tile(ORIGIN_TILE, done)
            await done.wait()
            first = surface.pixels.copy()
            host.pan_to(400.0, 300.0)
            unchanged = surface.pixels.copy()
            # Scroll the x axis just above the viewport: labels get pushed down.
            host.pan_to(400.0, -20.0)
            moved = surface.pixels.copy()
            return layer, surface, first, unchanged, moved

        layer, surface, first, unchanged, moved = asyncio.run(scenario())
        self.assertTrue(np.array_equal(first, unchanged))
        self.assertFalse(np.array_equal(first, moved))
        self.assertIs(layer.tiles.get(ORIGIN_TILE).surface, surface)

    def test_move_while_font_pending_is_a_no_op(self) -> None:
        async def scenario():
            host = FakeHost()
            layer = GridLabelsLayer(fonts=FontCache(loader=_slow_default_font))
            layer.attach(host)
            done = _Done()
            surface = layer.create_tile(ORIGIN_TILE, done)
            redrawn = layer.redraw_current_tiles()
            host.pan_to(390.0, 310.0)
            await done.wait()
            return redrawn, surface, done

        redrawn, surface, done = asyncio.run(scenario())
        self.assertEqual(redrawn, 0)
        self.assertEqual(done.calls, [(None, surface)])

    def test_evicting_pending_tile_cancels_its_draw(self) -> None:
        async def scenario():
            host = FakeHost()
            layer = GridLabelsLayer(fonts=FontCache(loader=_slow_default_font))
            layer.attach(host)
            done = _Done()
            surface = layer.create_tile(ORIGIN_TILE, done)
            await asyncio.sleep(0)
            layer.evict_tile(ORIGIN_TILE)
            await layer.fonts.load(layer.font_spec)
            for _ in range(3):
                await asyncio.sleep(0)
            return layer, surface, done

        layer, surface, done = asyncio.run(scenario())
        self.assertEqual(done.calls, [])
        self.assertFalse(surface.attached)
        self.assertFalse(surface.pixels.any())
        self.assertEqual(len(layer.tiles), 0)

    def test_tiles_not_current_are_skipped_on_redraw(self) -> None:
        async def scenario():
            host = FakeHost()
            layer = GridLabelsLayer(fonts=FontCache(loader=default_font))
            layer.attach(host)
            done = _Done()
            layer.create_tile(ORIGIN_TILE, done)
            await done.wait()
            before = layer.redraw_current_tiles()
            layer.set_tile_current(ORIGIN_TILE, False)
            after = layer.redraw_current_tiles()
            return before, after

        self.assertEqual(asyncio.run(scenario()), (1, 0))

    def test_draw_failure_is_reported_through_done(self) -> None:
        async def scenario():
            host = FakeHost()
            host.fail_tile_rect = True
            layer = GridLabelsLayer(fonts=FontCache(loader=default_font))
            layer.attach(host)
            done = _Done()
            layer.create_tile(ORIGIN_TILE, done)
            await done.wait()
            return layer, done

        with self.assertLogs("cartesian_grid.layers", level="WARNING"):
            layer, done = asyncio.run(scenario())
        self.assertIsInstance(done.calls[0][0], RuntimeError)
        self.assertEqual(len(layer.tiles), 0)

    def test_attach_and_detach_manage_move_subscription(self) -> None:
        host = FakeHost()
        layer = GridLabelsLayer(fonts=FontCache(loader=default_font))
        layer.attach(host)
        self.assertEqual(len(host.moves), 1)
        with self.assertRaises(RuntimeError):
            layer.attach(host)
        layer.detach()
        self.assertEqual(len(host.moves), 0)
        self.assertFalse(layer.attached)
        host.moves.emit()
        layer.attach(host)
        self.assertEqual(len(host.moves), 1)

    def test_font_is_requested_at_device_resolution(self) -> None:
        from cartesian_grid.config import GridConfig

        layer = GridLabelsLayer(GridConfig(device_pixel_ratio=2.0), fonts=FontCache(loader=default_font))
        self.assertEqual(layer.font_spec, FontSpec("Noto Sans", 28.0))


class GridOverlayTests(unittest.TestCase):
    def test_overlay_produces_line_and_label_tiles(self) -> None:
        async def scenario():
            host = FakeHost()
            overlay = GridOverlay(fonts=FontCache(loader=default_font))
            overlay.attach(host)
            done = _Done(expected=2)
            lines, labels = overlay.create_tiles(TileCoords(-1, 0, 6), done)
            await done.wait()
            overlay.evict_tile(TileCoords(-1, 0, 6))
            overlay.detach()
            return host, overlay, lines, labels, done

        host, overlay, lines, labels, done = asyncio.run(scenario())
        self.assertEqual({id(s) for _, s in done.calls}, {id(lines), id(labels)})
        self.assertTrue(all(err is None for err, _ in done.calls))
        self.assertIsNot(lines, labels)
        self.assertEqual(len(overlay.lines.tiles), 0)
        self.assertEqual(len(overlay.labels.tiles), 0)
        self.assertEqual(len(host.moves), 0)


if __name__ == "__main__":
    unittest.main()
