"""Tests for string utilities."""

import pytest

from common.string_utils import normalize_text, truncate_for_logging


class TestNormalizeText:
    """Test the fuzzy lookup key."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Hey, welcome!", "hey welcome"),
            ("hey welcome", "hey welcome"),
            ("  What?!  Really...  ", "what really"),
            ("Tom &amp; Jerry", "tom & jerry"),
            ("line\nbreak here", "line break here"),
            ("", ""),
        ],
    )
    def test_normalizes(self, text, expected):
        assert normalize_text(text) == expected

    def test_punctuation_only_collapses_to_empty(self):
        assert normalize_text("...!?") == ""

    def test_keeps_apostrophes(self):
        assert normalize_text("It's fine.") == "it's fine"


class TestTruncateForLogging:
    def test_short_text_unchanged(self):
        assert truncate_for_logging("Hello", max_length=100) == "Hello"

    def test_long_text_shows_edges(self):
        text = "a" * 50 + "b" * 50

        result = truncate_for_logging(text, max_length=20, edge_length=5)

        assert result.startswith("aaaaa...")
        assert result.endswith("...bbbbb")
