"""Tests for the HH:MM:SS codec and PersistentTimerState file handling."""

import shutil
import tempfile
import unittest
from pathlib import Path

from keytimer.core import (
    PersistentTimerState,
    TimerFormatError,
    format_elapsed,
    is_fully_qualified,
    parse_elapsed,
)


class TestElapsedFormat(unittest.TestCase):

    def test_format_zero_padded(self):
        self.assertEqual(format_elapsed(0), "00:00:00")
        self.assertEqual(format_elapsed(3), "00:00:03")
        self.assertEqual(format_elapsed(3661), "01:01:01")

    def test_format_hours_past_a_day_do_not_wrap(self):
        self.assertEqual(format_elapsed(25 * 3600), "25:00:00")
        self.assertEqual(format_elapsed(100 * 3600 + 59), "100:00:59")

    def test_format_rejects_negative(self):
        with self.assertRaises(ValueError):
            format_elapsed(-1)

    def test_parse_values(self):
        self.assertEqual(parse_elapsed("00:00:03"), 3)
        self.assertEqual(parse_elapsed(" 01:02:03\n"), 3723)
        self.assertEqual(parse_elapsed("48:00:00"), 48 * 3600)

    def test_round_trip_including_multi_day_values(self):
        for n in (0, 1, 59, 60, 3599, 3600, 86399, 86400, 90061, 360000 + 7):
            self.assertEqual(parse_elapsed(format_elapsed(n)), n)

    def test_parse_rejects_malformed(self):
        for text in ("", "garbage", "12:60:00", "00:00:60", "1:2", "-01:00:00", "aa:bb:cc"):
            with self.assertRaises(TimerFormatError, msg=text):
                parse_elapsed(text)

    def test_fully_qualified(self):
        self.assertTrue(is_fully_qualified(Path(tempfile.gettempdir()) / "out.txt"))
        self.assertFalse(is_fully_qualified("relative/out.txt"))
        self.assertFalse(is_fully_qualified(""))
        self.assertFalse(is_fully_qualified(None))
        self.assertFalse(is_fully_qualified("/tmp/a\x00b.txt"))


class TestPersistentTimerState(unittest.TestCase):

    def setUp(self):
        self.tmpdir = Path(tempfile.mkdtemp())
        self.data_dir = self.tmpdir / "data"
        self.warnings = []
        self.repeats = []
        self.state = PersistentTimerState(self.data_dir, on_warning=self._on_warning)

    def _on_warning(self, message, repeated):
        self.warnings.append(message)
        self.repeats.append(repeated)

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_first_load_creates_default_output_file(self):
        elapsed = self.state.load()
        self.assertEqual(elapsed, 0)
        self.assertEqual(self.state.output_path, self.data_dir / "TimerOutput.txt")
        self.assertEqual(self.state.output_path.read_text(encoding="utf-8"), "00:00:00")
        self.assertEqual(self.warnings, [])

    def test_load_reads_existing_output(self):
        self.data_dir.mkdir(parents=True)
        (self.data_dir / "TimerOutput.txt").write_text("02:00:05", encoding="utf-8")
        self.assertEqual(self.state.load(), 7205)

    def test_load_malformed_output_gives_zero(self):
        self.data_dir.mkdir(parents=True)
        (self.data_dir / "TimerOutput.txt").write_text("not a time", encoding="utf-8")
        self.assertEqual(self.state.load(), 0)

    def test_load_adopts_qualified_settings_path(self):
        custom = self.tmpdir / "elsewhere" / "mine.txt"
        custom.parent.mkdir(parents=True)
        custom.write_text("00:01:00", encoding="utf-8")
        self.data_dir.mkdir(parents=True)
        (self.data_dir / "settings.txt").write_text(str(custom), encoding="utf-8")

        self.assertEqual(self.state.load(), 60)
        self.assertEqual(self.state.output_path, custom)

    def test_load_ignores_relative_settings_path(self):
        self.data_dir.mkdir(parents=True)
        (self.data_dir / "settings.txt").write_text("relative/out.txt", encoding="utf-8")

        self.state.load()
        self.assertEqual(self.state.output_path, self.data_dir / "TimerOutput.txt")

    def test_unreadable_settings_warns_and_uses_default(self):
        # A directory where the settings file should be makes the read fail.
        (self.data_dir / "settings.txt").mkdir(parents=True)

        elapsed = self.state.load()
        self.assertEqual(elapsed, 0)
        self.assertEqual(self.state.output_path, self.data_dir / "TimerOutput.txt")
        self.assertEqual(len(self.warnings), 1)

    def test_unreadable_output_warns_and_gives_zero(self):
        (self.data_dir / "TimerOutput.txt").mkdir(parents=True)

        self.assertEqual(self.state.load(), 0)
        self.assertEqual(len(self.warnings), 1)

    def test_save_overwrites_output(self):
        self.state.load()
        self.assertTrue(self.state.save(3))
        self.assertEqual(self.state.output_path.read_text(encoding="utf-8"), "00:00:03")
        self.assertTrue(self.state.save(90000))
        self.assertEqual(self.state.output_path.read_text(encoding="utf-8"), "25:00:00")

    def test_save_failure_is_reported_not_raised(self):
        self.state.load()
        blocked = self.tmpdir / "blocked"
        blocked.mkdir()
        self.state.output_path = blocked

        self.assertFalse(self.state.save(5))
        self.assertEqual(len(self.warnings), 1)
        self.assertIn("Error saving timer state", self.warnings[0])

    def test_repeated_save_failures_warn_once_until_recovered(self):
        self.state.load()
        good = self.state.output_path
        blocked = self.tmpdir / "blocked"
        blocked.mkdir()
        self.state.output_path = blocked

        for n in range(5):
            self.assertFalse(self.state.save(n))
        self.assertEqual(self.repeats, [False, True, True, True, True])

        self.state.output_path = good
        self.assertTrue(self.state.save(6))
        self.state.output_path = blocked
        self.assertFalse(self.state.save(7))
        self.assertEqual(self.repeats[-1], False)
        self.assertEqual(self.repeats.count(False), 2)

    def test_new_output_path_failure_is_reported_as_new(self):
        self.state.load()
        blocked = self.tmpdir / "blocked"
        blocked.mkdir()
        self.state.output_path = blocked
        self.state.save(1)
        self.state.save(2)

        other = self.tmpdir / "other_blocked"
        other.mkdir()
        self.state.set_output_path(other, 3)
        self.assertEqual(self.repeats, [False, True, False])

    def test_binary_output_file_warns_and_gives_zero(self):
        self.data_dir.mkdir(parents=True)
        (self.data_dir / "TimerOutput.txt").write_bytes(b"\xff\xfe\x00garbage")

        self.assertEqual(self.state.load(), 0)
        self.assertEqual(len(self.warnings), 1)
        self.assertIn("Error loading timer state", self.warnings[0])

    def test_binary_settings_file_falls_back_to_default(self):
        self.data_dir.mkdir(parents=True)
        (self.data_dir / "settings.txt").write_bytes(b"\xff\xfe\x00\x81")

        self.assertEqual(self.state.load(), 0)
        self.assertEqual(self.state.output_path, self.data_dir / "TimerOutput.txt")
        self.assertEqual(len(self.warnings), 1)
        self.assertIn("Error loading settings", self.warnings[0])

    def test_settings_path_with_nul_byte_falls_back_to_default(self):
        self.data_dir.mkdir(parents=True)
        (self.data_dir / "settings.txt").write_text(str(self.tmpdir / "a\x00b.txt"), encoding="utf-8")

        self.assertEqual(self.state.load(), 0)
        self.assertEqual(self.state.output_path, self.data_dir / "TimerOutput.txt")
        self.assertTrue((self.data_dir / "TimerOutput.txt").exists())

    def test_set_output_path_rejects_nul_byte(self):
        self.state.load()
        with self.assertRaises(ValueError):
            self.state.set_output_path(str(self.tmpdir / "a\x00b.txt"), 1)
        self.assertEqual(self.state.output_path, self.data_dir / "TimerOutput.txt")

    def test_set_output_path_persists_settings_and_value(self):
        self.state.load()
        new_path = self.tmpdir / "new" / "path.txt"

        self.state.set_output_path(new_path, 42)

        self.assertEqual(self.state.output_path, new_path)
        self.assertEqual((self.data_dir / "settings.txt").read_text(encoding="utf-8"), str(new_path))
        self.assertEqual(new_path.read_text(encoding="utf-8"), "00:00:42")

    def test_set_output_path_rejects_relative(self):
        self.state.load()
        with self.assertRaises(ValueError):
            self.state.set_output_path("relative.txt", 1)
        self.assertEqual(self.state.output_path, self.data_dir / "TimerOutput.txt")

    def test_save_settings_writes_current_path(self):
        self.state.load()
        self.assertTrue(self.state.save_settings())
        self.assertEqual(
            (self.data_dir / "settings.txt").read_text(encoding="utf-8"),
            str(self.data_dir / "TimerOutput.txt"),
        )


if __name__ == "__main__":
    unittest.main()
