"""Utilities for extracting structured data from free-form model responses."""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from common.string_utils import truncate_for_logging
from common.subtitle_parser import TranslationCountMismatchError

logger = logging.getLogger(__name__)

# Fenced block, optionally labelled json
FENCED_BLOCK_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)

# Start of a bare array of objects embedded in prose
BARE_ARRAY_START_PATTERN = re.compile(r"\[\s*[\{\]]")


class GPTJSONParsingError(Exception):
    """
    Exception for response extraction failures.

    This is a transient error that should be retried, as the model may return
    properly formatted JSON on subsequent attempts.
    """

    pass


def find_first_json_block(response: str) -> Optional[str]:
    """
    Find the first structured block in a response.

    Only the first match is returned. Later matches (for instance the worked
    example of the prompt echoed back by the model) are ignored.

    Args:
        response: Raw response text from the model

    Returns:
        Contents of the first block, stripped, or None if there is none

    Examples:
        >>> find_first_json_block('Sure!\\n```json\\n[{"a": 1}]\\n```')
        '[{"a": 1}]'
        >>> find_first_json_block('Result: [{"a": 1}] done')
        '[{"a": 1}]'
        >>> find_first_json_block('no data here') is None
        True
    """
    if not response:
        return None

    fenced = FENCED_BLOCK_PATTERN.search(response)
    bare = BARE_ARRAY_START_PATTERN.search(response)

    if fenced and (bare is None or fenced.start() <= bare.start()):
        return fenced.group(1).strip()
    if bare:
        return _slice_balanced_array(response, bare.start()).strip()
    return None


def _slice_balanced_array(text: str, start: int) -> str:
    """Return the array literal opening at start, up to its matching bracket."""
    depth = 0
    in_string = False
    escaped = False

    for position in range(start, len(text)):
        char = text[position]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return text[start : position + 1]

    # Unbalanced (e.g. truncated response): let the parser report it
    return text[start:]


def parse_json_robustly(text: str) -> Any:
    """
    Parse JSON with error recovery for common model formatting issues.

    Tries strict parsing first, then removes trailing commas, then inserts
    missing commas between adjacent objects.

    Args:
        text: JSON text to parse

    Returns:
        Parsed JSON data

    Raises:
        GPTJSONParsingError: If all parsing strategies fail
    """
    # Strategy 1: Standard JSON parsing
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.debug(f"Standard JSON parsing failed: {e}. Trying recovery strategies...")

    # Strategy 2: Trailing commas before a closing bracket or brace
    without_trailing_commas = re.sub(r",\s*([\]}])", r"\1", text)
    try:
        return json.loads(without_trailing_commas)
    except json.JSONDecodeError:
        logger.debug("Trailing comma strategy failed")

    # Strategy 3: Missing commas between objects
    try:
        return json.loads(re.sub(r"\}\s*\{", "},{", without_trailing_commas))
    except json.JSONDecodeError:
        logger.debug("Comma insertion strategy failed")

    raise GPTJSONParsingError(
        "Failed to parse JSON after trying all recovery strategies"
    )


def extract_translation_items(
    response: str,
    expected_count: int,
    batch_index: Optional[int] = None,
    total_batches: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Extract the per-subtitle result objects from a translation response.

    Args:
        response: Raw response text from the translator
        expected_count: Number of subtitles in the batch
        batch_index: Optional batch index for error messages
        total_batches: Optional batch count for error messages

    Returns:
        List of result dictionaries, one per subtitle, in batch order

    Raises:
        GPTJSONParsingError: If no block is found, it cannot be parsed, or it
            holds something other than objects
        TranslationCountMismatchError: If the item count differs from expected_count
    """
    block = find_first_json_block(response)
    if block is None:
        logger.error(
            f"No JSON block found in response: {truncate_for_logging(response or '')}"
        )
        raise GPTJSONParsingError("No JSON block found in response")

    try:
        data = parse_json_robustly(block)
    except GPTJSONParsingError as e:
        logger.error(f"Failed to parse JSON block: {truncate_for_logging(block)}")
        raise GPTJSONParsingError(f"Invalid JSON response from model: {e}") from e

    if isinstance(data, dict):
        data = [data]

    if not isinstance(data, list):
        raise GPTJSONParsingError(f"Expected JSON array, got {type(data).__name__}")

    for item in data:
        if not isinstance(item, dict):
            raise GPTJSONParsingError(
                f"Expected JSON objects in array, got {type(item).__name__}"
            )

    if len(data) != expected_count:
        logger.warning(
            f"⚠️  Response item count mismatch: expected {expected_count}, got {len(data)}"
        )
        raise TranslationCountMismatchError(
            expected_count=expected_count,
            actual_count=len(data),
            batch_index=batch_index,
            total_batches=total_batches,
            response_sample=truncate_for_logging(response),
        )

    return data
