"""Tests for caption track discovery and download."""

import json

import httpx
import pytest

from common.caption_track import (
    CaptionTrackClient,
    CaptionTrackError,
    parse_caption_tracks,
    select_caption_track,
)
from common.config import Settings
from common.subtitle_parser import RawCue

EN_TRACK = {
    "baseUrl": "https://captions.test/en",
    "languageCode": "en",
    "name": {"simpleText": "English (auto-generated)"},
}
DE_TRACK = {
    "baseUrl": "https://captions.test/de",
    "languageCode": "de",
    "name": {"simpleText": "German"},
}


def watch_page(tracks) -> str:
    player_response = {
        "videoDetails": {"title": "a {tricky} title"},
        "captions": {"playerCaptionsTracklistRenderer": {"captionTracks": tracks}},
    }
    return (
        "<html><script>var ytInitialPlayerResponse = "
        f"{json.dumps(player_response)};var meta = 1;</script></html>"
    )


def build_client(handler) -> CaptionTrackClient:
    settings = Settings(
        _env_file=None, caption_watch_url_template="https://watch.test/{video_id}"
    )
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CaptionTrackClient(settings, client=http_client)


class TestParseCaptionTracks:
    def test_reads_track_list(self):
        assert parse_caption_tracks(watch_page([DE_TRACK, EN_TRACK])) == [
            DE_TRACK,
            EN_TRACK,
        ]

    @pytest.mark.parametrize(
        "page",
        [
            "<html>no player here</html>",
            "<html>ytInitialPlayerResponse = {broken</html>",
            "<html>var ytInitialPlayerResponse = {\"captions\": {}};</html>",
        ],
    )
    def test_returns_empty_list_without_tracks(self, page):
        assert parse_caption_tracks(page) == []

    def test_skips_marker_mentions_without_assignment(self):
        page = "<p>if (ytInitialPlayerResponse) {}</p>" + watch_page([EN_TRACK])

        assert parse_caption_tracks(page) == [EN_TRACK]


class TestSelectCaptionTrack:
    def test_prefers_language_code(self):
        assert select_caption_track([DE_TRACK, EN_TRACK], "en") is EN_TRACK

    def test_matches_by_display_name(self):
        track = {"baseUrl": "u", "languageCode": "en-GB", "name": {"simpleText": "English (UK)"}}

        assert select_caption_track([DE_TRACK, track], "en") is track

    def test_falls_back_to_first_track(self):
        assert select_caption_track([DE_TRACK], "en") is DE_TRACK

    def test_no_tracks(self):
        assert select_caption_track([], "en") is None


class TestCaptionTrackClient:
    @pytest.mark.asyncio
    async def test_discovers_track_and_loads_cues(self, timed_text_xml):
        # Arrange
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            if request.url.host == "watch.test":
                return httpx.Response(200, text=watch_page([DE_TRACK, EN_TRACK]))
            return httpx.Response(200, text=timed_text_xml)

        client = build_client(handler)

        # Act
        cues = await client.load_cues("abc123")

        # Assert
        assert requested == ["https://watch.test/abc123", "https://captions.test/en"]
        assert cues[0] == RawCue(0, 1500, "hi")

    @pytest.mark.asyncio
    async def test_explicit_track_url_skips_discovery(self, timed_text_xml):
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, text=timed_text_xml)

        cues = await build_client(handler).load_cues("abc123", "https://captions.test/x")

        assert requested == ["https://captions.test/x"]
        assert len(cues) == 3

    @pytest.mark.asyncio
    async def test_http_error_raises_caption_track_error(self):
        client = build_client(lambda request: httpx.Response(404))

        with pytest.raises(CaptionTrackError, match="404"):
            await client.load_cues("abc123", "https://captions.test/x")

    @pytest.mark.asyncio
    async def test_network_error_raises_caption_track_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(CaptionTrackError):
            await build_client(handler).fetch_watch_page("abc123")

    @pytest.mark.asyncio
    async def test_video_without_tracks(self):
        client = build_client(lambda request: httpx.Response(200, text=watch_page([])))

        with pytest.raises(CaptionTrackError, match="No caption tracks"):
            await client.load_cues("abc123")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ["<transcript></transcript>", "<transcript"])
    async def test_empty_or_malformed_track(self, body):
        client = build_client(lambda request: httpx.Response(200, text=body))

        with pytest.raises(CaptionTrackError):
            await client.load_cues("abc123", "https://captions.test/x")
