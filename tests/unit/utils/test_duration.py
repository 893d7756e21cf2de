"""Tests for duration parsing."""

import pytest

from podtracks.utils.duration import UNKNOWN_DURATION, format_duration, parse_duration


class TestParseDuration:
    """Tests for parse_duration."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("1:23:45", 5025),
            ("3:45", 225),
            ("45", 45),
            ("4:30", 270),
            ("0:00", 0),
            (" 12:05 ", 725),
            ("225.5", 225),
        ],
    )
    def test_textual_forms(self, raw, expected):
        """Test SS, MM:SS and HH:MM:SS forms."""
        assert parse_duration(raw) == expected

    def test_numbers(self):
        """Test integer and float inputs from API payloads."""
        assert parse_duration(300) == 300
        assert parse_duration(12.9) == 12

    def test_zero_is_a_real_duration(self):
        """Test zero stays zero and is not confused with unknown."""
        assert parse_duration(0) == 0
        assert parse_duration(0) is not UNKNOWN_DURATION

    @pytest.mark.parametrize("raw", ["soon", "", "   ", "1:2:3:4", "-5", "3:45 min", None, True])
    def test_unparseable_is_unknown(self, raw):
        """Test unparseable input yields the unknown sentinel, never zero."""
        assert parse_duration(raw) is UNKNOWN_DURATION

    def test_negative_number_is_unknown(self):
        assert parse_duration(-1) is UNKNOWN_DURATION


class TestFormatDuration:
    """Tests for format_duration."""

    def test_minutes(self):
        assert format_duration(225) == "3:45"

    def test_hours(self):
        assert format_duration(5025) == "1:23:45"

    def test_unknown(self):
        assert format_duration(UNKNOWN_DURATION) == "?"
