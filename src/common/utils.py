"""Utility functions for common operations across the application."""

import logging
import re
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import parse_qs, urlparse

logger = logging.getLogger(__name__)

# YouTube video ids are 11 characters from the URL-safe base64 alphabet
VIDEO_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")


class MathUtils:
    """Mathematical utility functions."""

    @staticmethod
    def calculate_percentage(completed: int, total: int) -> float:
        """
        Calculate the percentage of completed items out of total items.

        Args:
            completed: Number of completed items
            total: Total number of items

        Returns:
            Percentage as a float between 0 and 100

        Example:
            >>> MathUtils.calculate_percentage(5, 10)
            50.0
        """
        if total <= 0:
            return 0.0
        return (completed / total) * 100


class TimeUtils:
    """Conversions between clock readings and caption milliseconds."""

    @staticmethod
    def seconds_to_ms(seconds: float) -> int:
        """
        Convert fractional seconds to whole milliseconds.

        Example:
            >>> TimeUtils.seconds_to_ms(1.5)
            1500
        """
        return int(round(float(seconds) * 1000))


class DateTimeUtils:
    """Date and time utility functions."""

    @staticmethod
    def get_current_utc_datetime() -> datetime:
        """Get current UTC datetime."""
        return datetime.now(timezone.utc)

    @staticmethod
    def get_date_string_for_log_file() -> str:
        """
        Get current date string formatted for log file names.

        Returns:
            Date string in YYYYMMDD format
        """
        return datetime.now().strftime("%Y%m%d")


class URLUtils:
    """Video URL helpers."""

    @staticmethod
    def extract_video_id(value: str) -> Optional[str]:
        """
        Extract a video id from a watch URL, a short link, or a bare id.

        Args:
            value: URL like https://www.youtube.com/watch?v=ID, https://youtu.be/ID,
                or the id itself

        Returns:
            The video id, or None if none can be found

        Example:
            >>> URLUtils.extract_video_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=3")
            'dQw4w9WgXcQ'
        """
        if not value:
            return None

        value = value.strip()
        if VIDEO_ID_PATTERN.match(value):
            return value

        parsed = urlparse(value)
        if parsed.netloc.endswith("youtu.be"):
            candidate = parsed.path.lstrip("/").split("/")[0]
            return candidate or None

        ids = parse_qs(parsed.query).get("v")
        if ids and ids[0]:
            return ids[0]

        logger.debug(f"No video id found in {value!r}")
        return None
