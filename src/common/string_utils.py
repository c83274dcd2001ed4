"""String manipulation utilities."""

import html
import re

_WHITESPACE_PATTERN = re.compile(r"\s+")
_PUNCTUATION_PATTERN = re.compile(r"[.,!?]")


def truncate_for_logging(
    text: str, max_length: int = 1000, edge_length: int = 500
) -> str:
    """
    Truncate text for logging, showing beginning and end.

    Args:
        text: Text to truncate
        max_length: Maximum length before truncation is applied
        edge_length: Number of characters to show from start and end

    Returns:
        Truncated text with ellipsis if needed, or original text if short enough

    Examples:
        >>> truncate_for_logging("Hello", max_length=100)
        'Hello'
        >>> "..." in truncate_for_logging("x" * 2000, max_length=1000, edge_length=10)
        True
    """
    if len(text) <= max_length:
        return text
    return f"{text[:edge_length]}...\n...{text[-edge_length:]}"


def normalize_text(text: str) -> str:
    """
    Build the fuzzy lookup key for a subtitle text.

    Decodes HTML entities, collapses whitespace, drops sentence punctuation
    (. , ! ?) and lowercases, so that a corrected or re-fetched caption still
    finds its cached record.

    Args:
        text: Subtitle text as fetched or as stored in the cache

    Returns:
        Normalized key

    Examples:
        >>> normalize_text("Hey, welcome!")
        'hey welcome'
        >>> normalize_text("Tom &amp; Jerry\\n  are   back.")
        'tom & jerry are back'
    """
    if not text:
        return ""
    decoded = html.unescape(text).replace("\xa0", " ")
    stripped = _PUNCTUATION_PATTERN.sub("", decoded)
    collapsed = _WHITESPACE_PATTERN.sub(" ", stripped)
    return collapsed.lower().strip()
