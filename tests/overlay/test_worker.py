"""Tests for the command-line entry point."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from common.caption_track import CaptionTrackError
from overlay.worker import main, parse_args
from translator.translation_service import MockTranslator


class TestParseArgs:
    def test_repeatable_times(self):
        args = parse_args(["dQw4w9WgXcQ", "--at", "1.5", "--at", "3"])

        assert args.video == "dQw4w9WgXcQ"
        assert args.at == [1.5, 3.0]
        assert args.track_url is None


class TestMain:
    @pytest.fixture
    def track_client(self, sample_cues):
        client = MagicMock()
        client.load_cues = AsyncMock(return_value=sample_cues)
        return client

    @pytest.mark.asyncio
    async def test_translates_and_prints_lines(
        self, track_client, file_cache_store, test_settings, capsys
    ):
        with patch(
            "overlay.worker.create_translator", return_value=MockTranslator("Chinese")
        ), patch(
            "overlay.worker.create_cache_store", return_value=file_cache_store
        ), patch(
            "overlay.session.CaptionTrackClient", return_value=track_client
        ), patch(
            "overlay.session_manager.settings", test_settings
        ):
            exit_code = await main(["dQw4w9WgXcQ", "--at", "1.0"])

        assert exit_code == 0
        output = capsys.readouterr().out
        assert "[1.0s] hi there" in output
        assert "[1.0s] [Chinese] hi there" in output

    @pytest.mark.asyncio
    async def test_track_failure_exit_code(self, track_client, file_cache_store):
        track_client.load_cues.side_effect = CaptionTrackError("no tracks")

        with patch("overlay.worker.create_translator", return_value=MockTranslator()), patch(
            "overlay.worker.create_cache_store", return_value=file_cache_store
        ), patch("overlay.session.CaptionTrackClient", return_value=track_client):
            assert await main(["dQw4w9WgXcQ"]) == 1

    @pytest.mark.asyncio
    async def test_invalid_video_exit_code(self, file_cache_store):
        with patch("overlay.worker.create_translator", return_value=MockTranslator()), patch(
            "overlay.worker.create_cache_store", return_value=file_cache_store
        ):
            assert await main(["https://www.youtube.com/"]) == 2
