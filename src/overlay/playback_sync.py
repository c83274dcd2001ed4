"""Resolve the captions to display at a playback position."""

from typing import List, Optional

from common.config import Settings, settings
from common.schemas import RenderLine
from common.subtitle_parser import MergedSubtitle
from common.utils import TimeUtils
from translator.translation_cache import TranslationCache


class PlaybackSync:
    """
    Maps a playback time to render-ready caption lines.

    Pure: reads the subtitles and the cache, never writes or performs I/O.
    """

    def __init__(self, app_settings: Optional[Settings] = None):
        self.settings = app_settings or settings
        self.max_subtitles = self.settings.playback_max_subtitles
        self.original_label = self.settings.playback_original_label
        self.pending_label = self.settings.playback_pending_label

    def active_subtitles(
        self, t_ms: int, subtitles: List[MergedSubtitle]
    ) -> List[MergedSubtitle]:
        """Subtitles covering t_ms, limited to the last max_subtitles in list order."""
        active = [subtitle for subtitle in subtitles if subtitle.contains(t_ms)]
        return active[-self.max_subtitles :]

    def resolve(
        self,
        t_ms: int,
        subtitles: List[MergedSubtitle],
        cache: TranslationCache,
    ) -> List[RenderLine]:
        """
        Build the lines to render at a playback time.

        Args:
            t_ms: Playback position in milliseconds
            subtitles: Merged subtitles of the video
            cache: Translation cache of the video

        Returns:
            One RenderLine per active subtitle; untranslated subtitles show
            the labelled original text above the pending label
        """
        lines = []
        for subtitle in self.active_subtitles(t_ms, subtitles):
            record = cache.get(subtitle.text)
            corrected = record.corrected_text if record is not None else ""
            translation = record.translation if record is not None else ""

            # Each line falls back on its own when the record leaves it empty
            lines.append(
                RenderLine(
                    start_ms=subtitle.start_ms,
                    end_ms=subtitle.end_ms,
                    original_text=subtitle.text,
                    primary_text=corrected or f"{self.original_label}{subtitle.text}",
                    secondary_text=translation or self.pending_label,
                    is_translated=bool(translation),
                )
            )
        return lines

    def resolve_seconds(
        self,
        seconds: float,
        subtitles: List[MergedSubtitle],
        cache: TranslationCache,
    ) -> List[RenderLine]:
        """Same as resolve, for a fractional-seconds clock reading."""
        return self.resolve(TimeUtils.seconds_to_ms(seconds), subtitles, cache)
