"""Tests for common utility helpers."""

from datetime import timezone

import pytest

from common.utils import DateTimeUtils, MathUtils, TimeUtils, URLUtils


class TestMathUtils:
    @pytest.mark.parametrize(
        "completed,total,expected",
        [(5, 10, 50.0), (0, 10, 0.0), (10, 10, 100.0), (3, 0, 0.0)],
    )
    def test_calculate_percentage(self, completed, total, expected):
        assert MathUtils.calculate_percentage(completed, total) == expected


class TestTimeUtils:
    @pytest.mark.parametrize(
        "seconds,expected",
        [(1.5, 1500), ("2.25", 2250), (0, 0), (12.3456, 12346)],
    )
    def test_seconds_to_ms(self, seconds, expected):
        assert TimeUtils.seconds_to_ms(seconds) == expected

    def test_invalid_value_raises(self):
        with pytest.raises(ValueError):
            TimeUtils.seconds_to_ms("abc")


class TestDateTimeUtils:
    def test_current_datetime_is_utc(self):
        assert DateTimeUtils.get_current_utc_datetime().tzinfo == timezone.utc

    def test_log_file_date_format(self):
        value = DateTimeUtils.get_date_string_for_log_file()

        assert len(value) == 8
        assert value.isdigit()


class TestURLUtils:
    """Test video id extraction."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", "dQw4w9WgXcQ"),
            ("https://www.youtube.com/watch?feature=x&v=dQw4w9WgXcQ&t=3", "dQw4w9WgXcQ"),
            ("https://youtu.be/dQw4w9WgXcQ?t=10", "dQw4w9WgXcQ"),
            ("dQw4w9WgXcQ", "dQw4w9WgXcQ"),
            ("  dQw4w9WgXcQ  ", "dQw4w9WgXcQ"),
        ],
    )
    def test_extracts_video_id(self, value, expected):
        assert URLUtils.extract_video_id(value) == expected

    @pytest.mark.parametrize(
        "value",
        ["", None, "https://www.youtube.com/feed/trending", "https://youtu.be/"],
    )
    def test_returns_none_without_id(self, value):
        assert URLUtils.extract_video_id(value) is None
