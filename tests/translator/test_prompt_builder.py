"""Tests for prompt construction."""

import json

import pytest

from common.config import Settings
from common.subtitle_parser import MergedSubtitle, SubtitleBatch
from translator.prompt_builder import EXAMPLE_OUTPUT, TranslationRequestBuilder
from translator.translation_service import BATCH_PAYLOAD_MARKER


@pytest.fixture
def batch() -> SubtitleBatch:
    return SubtitleBatch(
        index=1,
        total=3,
        items=[
            MergedSubtitle(0, 2500, "hi there"),
            MergedSubtitle(3000, 5000, 'she said "wow"'),
        ],
    )


class TestTranslationRequestBuilder:
    def test_payload_is_last_and_round_trips(self, batch):
        # Arrange
        builder = TranslationRequestBuilder(Settings(_env_file=None))

        # Act
        prompt = builder.build(batch)

        # Assert
        _, _, payload = prompt.partition(BATCH_PAYLOAD_MARKER)
        assert json.loads(payload) == [
            {"startTime": 0, "endTime": 2500, "text": "hi there"},
            {"startTime": 3000, "endTime": 5000, "text": 'she said "wow"'},
        ]

    def test_mentions_languages_and_field_order(self, batch):
        settings = Settings(
            _env_file=None,
            translation_source_language="English",
            translation_target_language="Japanese",
        )

        prompt = TranslationRequestBuilder(settings).build(batch)

        assert "English speech" in prompt
        assert "Japanese translation" in prompt
        assert "startTime > endTime > correctedText > translation" in prompt
        assert "Return ONLY the JSON array" in prompt

    def test_example_output_precedes_payload(self, batch):
        prompt = TranslationRequestBuilder(Settings(_env_file=None)).build(batch)

        assert prompt.index("OUTPUT EXAMPLE") < prompt.index(BATCH_PAYLOAD_MARKER)

    def test_chinese_target_uses_worked_example(self):
        assert TranslationRequestBuilder.example_output("Simplified Chinese") == EXAMPLE_OUTPUT

    def test_other_targets_use_placeholders(self):
        example = TranslationRequestBuilder.example_output("French")

        assert [item["translation"] for item in example] == [
            "<French translation>",
            "<French translation>",
        ]
        assert example[0]["correctedText"] == EXAMPLE_OUTPUT[0]["correctedText"]

    def test_serialize_batch_keeps_integer_milliseconds(self):
        serialized = TranslationRequestBuilder.serialize_batch(
            [MergedSubtitle(120, 1800, "hey")]
        )

        assert serialized == [{"startTime": 120, "endTime": 1800, "text": "hey"}]
