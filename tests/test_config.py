"""
Test cases for configuration loading.
"""
import tempfile
import unittest
from pathlib import Path

import yaml

from motionplay.config import default_config_path, load_config
from motionplay.errors import ConfigError


class TestLoadConfig(unittest.TestCase):
    """Test the packaged defaults and validation."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmp.cleanup()

    def write(self, data) -> str:
        path = Path(self.tmp.name) / "config.yaml"
        with open(path, "w") as f:
            yaml.safe_dump(data, f)
        return str(path)

    def default_data(self):
        with open(default_config_path()) as f:
            return yaml.safe_load(f)

    def test_default_config(self):
        cfg = load_config()

        self.assertEqual(cfg.detection.interval_ms, 100)
        self.assertEqual(cfg.metrics.consistency_window, 5)
        self.assertEqual(set(cfg.games), {"shape_sense", "orb_catcher", "fruit_sync", "road_tracer", "buzz_tap"})

    def test_game_settings(self):
        cfg = load_config()

        shape = cfg.game("shape_sense")
        self.assertEqual(shape.metric, "pinch")
        self.assertEqual(shape.threshold, 0.07)
        self.assertEqual(shape.capture_radius, 30.0)
        self.assertIsNone(shape.target_score)

        orb = cfg.game("orb_catcher")
        self.assertEqual(orb.metric, "grasp")
        self.assertEqual(orb.target_score, 10)
        self.assertEqual(orb.options["spawn_interval_s"], 3.0)

        self.assertEqual(cfg.game("road_tracer").smoothing, 0.7)
        self.assertIsNone(cfg.game("buzz_tap").metric)

    def test_unknown_game(self):
        with self.assertRaises(ConfigError):
            load_config().game("tetris")

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_config(str(Path(self.tmp.name) / "nope.yaml"))

    def test_missing_section(self):
        data = self.default_data()
        del data["viewport"]

        with self.assertRaises(ConfigError):
            load_config(self.write(data))

    def test_invalid_smoothing(self):
        data = self.default_data()
        data["games"]["shape_sense"]["smoothing"] = 1.5

        with self.assertRaises(ConfigError):
            load_config(self.write(data))

    def test_not_a_mapping(self):
        with self.assertRaises(ConfigError):
            load_config(self.write(["a", "b"]))

    def test_config_error_is_value_error(self):
        self.assertTrue(issubclass(ConfigError, ValueError))


if __name__ == '__main__':
    unittest.main()
