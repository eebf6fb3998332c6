"""Tests for settings.json loading and defaults.

Covers: tm.core.config
"""

import json
import shutil
import tempfile
import unittest
from pathlib import Path

import fakes  # noqa: F401


class TestConfig(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self._tmppath = Path(self.tmpdir)

        # Monkey-patch config paths to use temp dir
        from tm.core import config
        self._orig_settings_path = config.SETTINGS_PATH
        config.SETTINGS_PATH = self._tmppath / "settings.json"

    def tearDown(self):
        from tm.core import config
        config.SETTINGS_PATH = self._orig_settings_path
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def _write(self, payload):
        from tm.core import config
        config.SETTINGS_PATH.write_text(payload if isinstance(payload, str) else json.dumps(payload), encoding="utf-8")

    def test_missing_file_gives_defaults(self):
        from tm.core.config import build_default_settings, load_settings
        self.assertEqual(load_settings(), build_default_settings())

    def test_defaults(self):
        from tm.core.config import build_default_settings
        s = build_default_settings()
        self.assertEqual(s["task_slots"], 3)
        self.assertEqual(s["poll_interval_ms"], 50)
        self.assertEqual(s["lock_chord"], ["ctrl", "shift", "l"])
        self.assertEqual(s["mini_chord"], ["ctrl", "shift", "k"])
        self.assertEqual((s["opacity_focused"], s["opacity_unfocused"], s["opacity_click_through"]), (255, 180, 120))
        self.assertEqual(s["mini_size"], [450, 40])
        self.assertEqual(s["stats_days"], 7)

    def test_defaults_are_fresh_copies(self):
        from tm.core.config import build_default_settings
        first = build_default_settings()
        first["lock_chord"].append("x")
        self.assertEqual(build_default_settings()["lock_chord"], ["ctrl", "shift", "l"])

    def test_save_and_load_roundtrip(self):
        from tm.core.config import build_default_settings, load_settings, save_settings
        s = build_default_settings()
        s["task_slots"] = 5
        s["opacity_unfocused"] = 200
        s["lock_chord"] = ["ctrl", "alt", "l"]
        save_settings(s)
        self.assertEqual(load_settings(), s)

    def test_invalid_values_are_defaulted(self):
        from tm.core.config import build_default_settings, load_settings
        defaults = build_default_settings()
        self._write({
            "task_slots": 0,
            "opacity_focused": 300,
            "poll_interval_ms": "fast",
            "always_on_top": 1,
            "mini_size": [450],
            "lock_chord": [],
            "stats_days": 14,
        })
        s = load_settings()
        for key in ("task_slots", "opacity_focused", "poll_interval_ms", "always_on_top", "mini_size", "lock_chord"):
            self.assertEqual(s[key], defaults[key], key)
        self.assertEqual(s["stats_days"], 14)

    def test_click_through_opacity_range(self):
        """Locked opacity stays in the 120-150 band; anything outside it falls back to 120."""
        from tm.core.config import load_settings
        for value, expected in ((135, 135), (150, 150), (255, 120), (60, 120)):
            self._write({"opacity_click_through": value})
            self.assertEqual(load_settings()["opacity_click_through"], expected, value)

    def test_bool_is_not_an_int(self):
        from tm.core.config import load_settings
        self._write({"chord_release_polls": True})
        self.assertEqual(load_settings()["chord_release_polls"], 1)

    def test_unknown_keys_are_dropped(self):
        from tm.core.config import load_settings
        self._write({"theme": "Cupertino Light"})
        self.assertNotIn("theme", load_settings())

    def test_corrupted_file_gives_defaults(self):
        from tm.core.config import build_default_settings, load_settings
        self._write("{ not json")
        self.assertEqual(load_settings(), build_default_settings())

    def test_non_object_root_gives_defaults(self):
        from tm.core.config import build_default_settings, load_settings
        self._write([1, 2, 3])
        self.assertEqual(load_settings(), build_default_settings())

    def test_explicit_path(self):
        from tm.core.config import load_settings, save_settings, build_default_settings
        other = self._tmppath / "nested" / "other.json"
        s = build_default_settings()
        s["stats_days"] = 30
        save_settings(s, other)
        self.assertEqual(load_settings(other)["stats_days"], 30)


if __name__ == "__main__":
    unittest.main()
