"""Tests for reply utility functions: format_duration and truncate."""

from __future__ import annotations

import pytest

from discord_play_manager.utils.reply import format_duration, truncate


class TestFormatDuration:
    @pytest.mark.parametrize(
        "seconds,expected",
        [
            (0, "0:00"),
            (59, "0:59"),
            (185, "3:05"),
            (3600, "1:00:00"),
            (3725.9, "1:02:05"),
        ],
    )
    def test_formats(self, seconds, expected):
        assert format_duration(seconds) == expected

    def test_unknown(self):
        assert format_duration(None) == "–"


class TestTruncate:
    def test_short_text_unchanged(self):
        assert truncate("hello", 10) == "hello"

    def test_exact_length_unchanged(self):
        assert truncate("a" * 10, 10) == "a" * 10

    def test_long_text_gets_ellipsis(self):
        result = truncate("a" * 20, 10)

        assert len(result) == 10
        assert result.endswith("…")

    def test_default_length(self):
        assert len(truncate("x" * 200)) == 90
