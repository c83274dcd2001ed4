"""Caption track discovery and download."""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from common.config import Settings, settings
from common.subtitle_parser import RawCue, TimedTextParser

logger = logging.getLogger(__name__)

PLAYER_RESPONSE_MARKER = "ytInitialPlayerResponse"


class CaptionTrackError(Exception):
    """
    Exception raised when no usable caption track can be loaded for a video.

    This is fatal for the current video: it is reported and the translation
    pipeline is not started.
    """

    pass


def parse_caption_tracks(page_html: str) -> List[Dict[str, Any]]:
    """
    Extract the caption track list embedded in a watch page.

    The page assigns a JSON object to ytInitialPlayerResponse; the tracks live
    under captions.playerCaptionsTracklistRenderer.captionTracks.

    Args:
        page_html: HTML of the watch page

    Returns:
        List of track dictionaries (with baseUrl, languageCode, name), or an
        empty list if none are present
    """
    decoder = json.JSONDecoder()
    search_from = 0

    while True:
        marker = page_html.find(PLAYER_RESPONSE_MARKER, search_from)
        if marker == -1:
            return []
        search_from = marker + len(PLAYER_RESPONSE_MARKER)

        brace = page_html.find("{", search_from)
        equals = page_html.find("=", search_from)
        if brace == -1 or equals == -1 or equals > brace:
            continue

        try:
            player_response, _ = decoder.raw_decode(page_html, brace)
        except json.JSONDecodeError as e:
            logger.debug(f"Failed to parse {PLAYER_RESPONSE_MARKER}: {e}")
            continue

        captions = player_response.get("captions") or {}
        renderer = captions.get("playerCaptionsTracklistRenderer") or {}
        tracks = renderer.get("captionTracks")
        if tracks:
            logger.info(f"Found {len(tracks)} caption tracks")
            return tracks


def select_caption_track(
    tracks: List[Dict[str, Any]], preferred_language: str = "en"
) -> Optional[Dict[str, Any]]:
    """
    Pick the caption track to translate.

    Prefers a track whose languageCode matches the preferred language or whose
    display name mentions it, and otherwise falls back to the first track.

    Args:
        tracks: Tracks returned by parse_caption_tracks
        preferred_language: Language code to prefer (e.g., 'en')

    Returns:
        The selected track, or None if there are no tracks
    """
    if not tracks:
        return None

    preferred = preferred_language.lower()
    preferred_names = {"en": "english"}.get(preferred, preferred)

    for track in tracks:
        language_code = str(track.get("languageCode", "")).lower()
        name = str((track.get("name") or {}).get("simpleText", "")).lower()
        if language_code == preferred or preferred_names in name:
            return track

    logger.info(
        f"No '{preferred_language}' caption track found, using first available track"
    )
    return tracks[0]


class CaptionTrackClient:
    """Async HTTP client that loads the caption cues of a video."""

    def __init__(
        self,
        app_settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = app_settings or settings
        self._client = client

    async def _get(self, url: str) -> str:
        try:
            if self._client is not None:
                response = await self._client.get(url)
                response.raise_for_status()
                return response.text

            async with httpx.AsyncClient(
                timeout=self.settings.caption_fetch_timeout, follow_redirects=True
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.text
        except httpx.HTTPStatusError as e:
            raise CaptionTrackError(
                f"Caption request failed with status {e.response.status_code}: {url}"
            ) from e
        except httpx.RequestError as e:
            raise CaptionTrackError(f"Caption request failed: {e}") from e

    async def fetch_watch_page(self, video_id: str) -> str:
        """Download the watch page that lists the video's caption tracks."""
        url = self.settings.caption_watch_url_template.format(video_id=video_id)
        return await self._get(url)

    async def fetch_timed_text(self, track_url: str) -> str:
        """Download a Timed-Text XML document."""
        return await self._get(track_url)

    async def resolve_track_url(self, video_id: str) -> str:
        """
        Find the caption track URL for a video.

        Raises:
            CaptionTrackError: If the page cannot be fetched or lists no tracks
        """
        page_html = await self.fetch_watch_page(video_id)
        track = select_caption_track(
            parse_caption_tracks(page_html), self.settings.caption_preferred_language
        )
        if not track or not track.get("baseUrl"):
            raise CaptionTrackError(f"No caption tracks available for video {video_id}")

        logger.info(
            f"Using caption track '{track.get('languageCode', 'unknown')}' for video {video_id}"
        )
        return track["baseUrl"]

    async def load_cues(
        self, video_id: str, track_url: Optional[str] = None
    ) -> List[RawCue]:
        """
        Load and parse the caption cues of a video.

        Args:
            video_id: Video identifier
            track_url: Explicit track URL; discovered from the watch page when None

        Returns:
            Raw cues ordered by start time

        Raises:
            CaptionTrackError: If the track cannot be fetched, parsed, or is empty
        """
        url = track_url or await self.resolve_track_url(video_id)
        content = await self.fetch_timed_text(url)

        try:
            cues = TimedTextParser.parse(content)
        except ValueError as e:
            raise CaptionTrackError(str(e)) from e

        if not cues:
            raise CaptionTrackError(f"Caption track for video {video_id} is empty")
        return cues
