"""Tests for studio_observability/formatter.py"""

import re
import unittest
from datetime import datetime, timezone

from studio_observability.formatter import (
    BOLD,
    COLORS,
    RESET,
    TIMESTAMP_COLOR,
    LogLevel,
    format_entry,
    format_message,
    format_timestamp,
    parse_level,
    should_emit,
)

TS = datetime(2025, 5, 15, 14, 30, 0, 123000, tzinfo=timezone.utc)


class TestLevels(unittest.TestCase):
    def test_total_order(self):
        self.assertLess(LogLevel.DEBUG, LogLevel.INFO)
        self.assertLess(LogLevel.INFO, LogLevel.WARN)
        self.assertLess(LogLevel.WARN, LogLevel.ERROR)

    def test_should_emit(self):
        levels = list(LogLevel)
        for threshold in levels:
            for level in levels:
                self.assertEqual(should_emit(level, threshold), level >= threshold)

    def test_parse_level(self):
        self.assertEqual(parse_level("warn"), LogLevel.WARN)
        self.assertEqual(parse_level(" Error "), LogLevel.ERROR)
        self.assertEqual(parse_level(LogLevel.DEBUG), LogLevel.DEBUG)
        self.assertIsNone(parse_level("verbose"))


class TestFormatMessage(unittest.TestCase):
    def test_strings_joined_with_spaces(self):
        self.assertEqual(format_message(["a", "b", "c"]), "a b c")

    def test_objects_serialized_as_json(self):
        result = format_message(["Config:", {"level": "INFO", "size": 3}, [1, 2]])
        self.assertEqual(result, 'Config: {"level":"INFO","size":3} [1,2]')

    def test_scalars(self):
        self.assertEqual(format_message([42, None, True]), "42 null true")

    def test_exception_rendered_with_kind(self):
        self.assertEqual(format_message(["failed:", ValueError("bad input")]),
                         "failed: ValueError: bad input")

    def test_unserializable_falls_back_to_str(self):
        class Thing:
            def __str__(self):
                return "<thing>"

        self.assertEqual(format_message([Thing()]), "<thing>")

    def test_circular_reference_falls_back_to_str(self):
        data = {}
        data["self"] = data
        self.assertEqual(format_message([data]), str(data))


class TestFormatEntry(unittest.TestCase):
    def test_timestamp_is_iso_utc(self):
        self.assertEqual(format_timestamp(TS), "2025-05-15T14:30:00.123Z")

    def test_plain_entry(self):
        self.assertEqual(format_entry(LogLevel.INFO, "Server started", timestamp=TS),
                         "2025-05-15T14:30:00.123Z [INFO ] Server started")

    def test_level_padded_to_five(self):
        line = format_entry(LogLevel.WARN, "x", timestamp=TS)
        self.assertIn("[WARN ]", line)
        line = format_entry(LogLevel.ERROR, "x", timestamp=TS)
        self.assertIn("[ERROR]", line)

    def test_plain_entry_has_no_ansi(self):
        for level in LogLevel:
            self.assertNotIn("\033[", format_entry(level, "msg", timestamp=TS))

    def test_terminal_entry_uses_level_color(self):
        line = format_entry(LogLevel.ERROR, "boom", for_terminal=True, timestamp=TS)
        self.assertEqual(
            line,
            f"{TIMESTAMP_COLOR}2025-05-15T14:30:00.123Z{RESET} "
            f"{COLORS[LogLevel.ERROR]}{BOLD}[ERROR]{RESET} boom",
        )

    def test_terminal_colors(self):
        self.assertEqual(COLORS[LogLevel.DEBUG], "\033[36m")
        self.assertEqual(COLORS[LogLevel.INFO], "\033[32m")
        self.assertEqual(COLORS[LogLevel.WARN], "\033[33m")
        self.assertEqual(COLORS[LogLevel.ERROR], "\033[31m")

    def test_stripping_ansi_gives_plain_line(self):
        colored = format_entry(LogLevel.DEBUG, "same", for_terminal=True, timestamp=TS)
        stripped = re.sub(r"\033\[\d+m", "", colored)
        self.assertEqual(stripped, format_entry(LogLevel.DEBUG, "same", timestamp=TS))


if __name__ == "__main__":
    unittest.main()
