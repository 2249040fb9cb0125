from __future__ import annotations

from pathlib import Path
import tempfile
import unittest

from cartesian_grid.config import GridConfig, config_from_mapping, load_config
from cartesian_grid.errors import GridConfigError


class GridConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        config = GridConfig()
        self.assertEqual(config.tile_size, 256)
        self.assertEqual(config.max_density, 20.0)
        self.assertEqual(config.device_tile_size, 256)
        self.assertEqual(config.label_font_family, "Noto Sans")
        self.assertGreaterEqual(config.world_context().prec, config.decimal_precision)

    def test_device_tile_size_follows_pixel_ratio(self) -> None:
        self.assertEqual(GridConfig(device_pixel_ratio=1.5).device_tile_size, 384)

    def test_invalid_values_rejected(self) -> None:
        for kwargs in (
            {"tile_size": 0},
            {"device_pixel_ratio": 0.0},
            {"max_density": -1.0},
            {"decimal_precision": 8},
            {"label_padding": -1.0},
        ):
            with self.assertRaises(GridConfigError, msg=str(kwargs)):
                GridConfig(**kwargs)

    def test_config_error_is_value_error(self) -> None:
        with self.assertRaises(ValueError):
            GridConfig(tile_size=-5)


class LoadConfigTests(unittest.TestCase):
    def _write(self, text: str) -> Path:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        path = Path(tmp.name) / "grid.toml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_load_grid_table(self) -> None:
        path = self._write(
            "\n".join(
                [
                    "[grid]",
                    "tile_size = 512",
                    "base_zoom_level = 0",
                    "device_pixel_ratio = 2.0",
                    'label_font_family = "DejaVu Sans"',
                    'minor_color = "#112233"',
                    "axis_color = [10, 20, 30]",
                ]
            )
        )
        config = load_config(path)
        self.assertEqual(config.tile_size, 512)
        self.assertEqual(config.base_zoom_level, 0)
        self.assertEqual(config.device_tile_size, 1024)
        self.assertEqual(config.label_font_family, "DejaVu Sans")
        self.assertEqual(config.minor_color, (0x11, 0x22, 0x33, 255))
        self.assertEqual(config.axis_color, (10, 20, 30, 255))

    def test_missing_table_uses_defaults(self) -> None:
        self.assertEqual(load_config(self._write("")), GridConfig())

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_config("/nonexistent/grid.toml")

    def test_unknown_keys_rejected(self) -> None:
        with self.assertRaises(GridConfigError):
            config_from_mapping({"tile_size": 256, "zoom_speed": 3})

    def test_bad_values_rejected(self) -> None:
        for raw in (
            {"minor_color": "#12"},
            {"minor_color": [1, 2]},
            {"minor_color": [0, 0, 300]},
            {"minor_color": 7},
            {"tile_size": "large"},
        ):
            with self.assertRaises(GridConfigError, msg=str(raw)):
                config_from_mapping(raw)


if __name__ == "__main__":
    unittest.main()
