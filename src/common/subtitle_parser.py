"""Timed-text caption parsing, cue merging and batching for translation."""

import html
import logging
import math
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Iterable, List, Optional

from common.utils import TimeUtils

logger = logging.getLogger(__name__)

# Defaults for merging raw cues into display-sized groups
DEFAULT_MAX_GAP_MS = 8000
DEFAULT_MAX_GROUP_DURATION_MS = 15000
DEFAULT_MAX_TEXT_LENGTH = 150

# Number of merged subtitles sent to the translator in one request
DEFAULT_BATCH_SIZE = 5


class TranslationCountMismatchError(ValueError):
    """
    Exception raised when a response holds a different number of items than its batch.

    Results are matched to inputs by position, so any mismatch would misalign
    translations. This is a transient error and the batch should be retried.
    """

    def __init__(
        self,
        expected_count: int,
        actual_count: int,
        batch_index: Optional[int] = None,
        total_batches: Optional[int] = None,
        response_sample: Optional[str] = None,
    ):
        """
        Initialize the error with detailed context.

        Args:
            expected_count: Number of subtitles in the batch
            actual_count: Number of items found in the response
            batch_index: Index of the batch being translated (if available)
            total_batches: Total number of batches (if available)
            response_sample: Sample of the response for debugging
        """
        self.expected_count = expected_count
        self.actual_count = actual_count
        self.batch_index = batch_index
        self.total_batches = total_batches
        self.response_sample = response_sample

        message = (
            f"Translation count mismatch: expected {expected_count} items, "
            f"but got {actual_count}"
        )
        if batch_index is not None and total_batches is not None:
            message += f" in batch {batch_index + 1}/{total_batches}"

        super().__init__(message)


@dataclass(frozen=True)
class RawCue:
    """A single timed caption entry from the source track."""

    start_ms: int
    end_ms: int
    text: str


@dataclass(frozen=True)
class MergedSubtitle:
    """A run of consecutive cues shown as one on-screen caption."""

    start_ms: int
    end_ms: int
    text: str

    def contains(self, time_ms: float) -> bool:
        """True while the playback position is inside [start, end)."""
        return self.start_ms <= time_ms < self.end_ms


@dataclass(frozen=True)
class SubtitleBatch:
    """An ordered slice of merged subtitles submitted in one translation request."""

    index: int
    total: int
    items: List[MergedSubtitle]

    def __len__(self) -> int:
        return len(self.items)

    @property
    def label(self) -> str:
        """Human readable position, e.g. '2/7'."""
        return f"{self.index + 1}/{self.total}"


class TimedTextParser:
    """Parser for Timed-Text XML caption documents."""

    @staticmethod
    def _clean_text(node: ET.Element) -> str:
        text = "".join(node.itertext())
        # Tracks are often double-escaped (e.g. &amp;#39;)
        text = html.unescape(text)
        return " ".join(text.split())

    @staticmethod
    def parse(content: str) -> List[RawCue]:
        """
        Parse a Timed-Text document into raw cues.

        Each <text start="s" dur="s"> element becomes one cue. A cue ends at
        start + dur, clipped to the next cue's start; the last cue keeps its
        full duration. Elements with no text are skipped.

        Args:
            content: Raw XML returned by the caption track URL

        Returns:
            List of RawCue ordered by start time

        Raises:
            ValueError: If the document is not well-formed XML
        """
        if content.startswith("\ufeff"):
            content = content[1:]

        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            raise ValueError(f"Invalid timed-text document: {e}") from e

        entries = []
        for node in root.iter("text"):
            try:
                start_ms = TimeUtils.seconds_to_ms(node.get("start", "0"))
                duration_ms = TimeUtils.seconds_to_ms(node.get("dur", "0"))
            except ValueError as e:
                logger.warning(f"Skipping cue with invalid timing {node.attrib}: {e}")
                continue

            text = TimedTextParser._clean_text(node)
            if not text:
                continue
            entries.append((start_ms, duration_ms, text))

        entries.sort(key=lambda entry: entry[0])

        cues = []
        for i, (start_ms, duration_ms, text) in enumerate(entries):
            end_ms = start_ms + duration_ms
            if i < len(entries) - 1:
                end_ms = min(end_ms, entries[i + 1][0])
            cues.append(RawCue(start_ms=start_ms, end_ms=end_ms, text=text))

        logger.info(f"Parsed {len(cues)} caption cues")
        return cues


def merge_cues(
    cues: Iterable[RawCue],
    max_gap_ms: int = DEFAULT_MAX_GAP_MS,
    max_group_duration_ms: int = DEFAULT_MAX_GROUP_DURATION_MS,
    max_text_length: int = DEFAULT_MAX_TEXT_LENGTH,
) -> List[MergedSubtitle]:
    """
    Coalesce raw cues into display-sized subtitle groups.

    Greedy left-to-right scan: the next cue joins the current group only if
    the gap to the group's end, the resulting group duration and the
    resulting text length all stay within their limits. A cue that is longer
    than max_text_length on its own still forms its own group.

    Args:
        cues: Raw cues ordered by start time
        max_gap_ms: Largest allowed silence between the group and the next cue
        max_group_duration_ms: Largest allowed duration of a merged group
        max_text_length: Largest allowed length of the merged text

    Returns:
        Ordered list of MergedSubtitle
    """
    if cues is None:
        raise ValueError("Cues cannot be None")

    merged: List[MergedSubtitle] = []
    current: Optional[MergedSubtitle] = None

    for cue in cues:
        if current is None:
            current = MergedSubtitle(cue.start_ms, cue.end_ms, cue.text)
            continue

        gap = cue.start_ms - current.end_ms
        would_be_duration = cue.end_ms - current.start_ms
        would_be_text = f"{current.text} {cue.text}"

        if (
            gap <= max_gap_ms
            and would_be_duration <= max_group_duration_ms
            and len(would_be_text) <= max_text_length
        ):
            current = MergedSubtitle(current.start_ms, cue.end_ms, would_be_text)
        else:
            merged.append(current)
            current = MergedSubtitle(cue.start_ms, cue.end_ms, cue.text)

    if current is not None:
        merged.append(current)

    logger.info(f"Merged cues into {len(merged)} subtitles")
    return merged


def chunk_subtitles(
    subtitles: List[MergedSubtitle], batch_size: int = DEFAULT_BATCH_SIZE
) -> List[SubtitleBatch]:
    """
    Split merged subtitles into contiguous batches for translation.

    Args:
        subtitles: Ordered merged subtitles
        batch_size: Maximum subtitles per batch (must be positive)

    Returns:
        List of SubtitleBatch; the last one may be shorter

    Raises:
        ValueError: If batch_size is less than 1 or subtitles is None
    """
    if subtitles is None:
        raise ValueError("Subtitles list cannot be None")

    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")

    if not subtitles:
        return []

    total = math.ceil(len(subtitles) / batch_size)
    batches = [
        SubtitleBatch(
            index=batch_index,
            total=total,
            items=list(subtitles[start : start + batch_size]),
        )
        for batch_index, start in enumerate(range(0, len(subtitles), batch_size))
    ]

    logger.info(f"Split {len(subtitles)} subtitles into {len(batches)} batches")
    return batches
