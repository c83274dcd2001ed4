"""Prompt construction for batch correction and translation requests."""

import json
import logging
from typing import Any, Dict, List, Optional

from common.config import Settings, settings
from common.subtitle_parser import MergedSubtitle, SubtitleBatch
from translator.translation_service import BATCH_PAYLOAD_MARKER

logger = logging.getLogger(__name__)

# Order of the fields expected in every response object
RESPONSE_FIELDS = ("startTime", "endTime", "correctedText", "translation")

EXAMPLE_INPUT = [
    {
        "startTime": 120,
        "endTime": 1800,
        "text": "hey welcome back so this week the world",
    },
    {
        "startTime": 1900,
        "endTime": 2500,
        "text": "were gonna talk about AI development",
    },
]

EXAMPLE_OUTPUT = [
    {
        "startTime": 120,
        "endTime": 1800,
        "correctedText": "Hey, welcome back! So this week, the world",
        "translation": "嘿，欢迎回来！本周我们将讨论",
    },
    {
        "startTime": 1900,
        "endTime": 2500,
        "correctedText": "We're going to talk about AI development",
        "translation": "关于人工智能发展的话题",
    },
]


class TranslationRequestBuilder:
    """Renders one batch of merged subtitles into an instruction prompt."""

    def __init__(self, app_settings: Optional[Settings] = None):
        self.settings = app_settings or settings

    @staticmethod
    def serialize_batch(items: List[MergedSubtitle]) -> List[Dict[str, Any]]:
        """
        Convert subtitles to the JSON input objects embedded in the prompt.

        Timestamps are passed through unchanged as integer milliseconds.
        """
        return [
            {"startTime": item.start_ms, "endTime": item.end_ms, "text": item.text}
            for item in items
        ]

    @staticmethod
    def example_output(target_language: str) -> List[Dict[str, Any]]:
        """Worked output example; translations are placeholders unless the target is Chinese."""
        if "chinese" in target_language.lower():
            return EXAMPLE_OUTPUT
        return [
            dict(item, translation=f"<{target_language} translation>")
            for item in EXAMPLE_OUTPUT
        ]

    def build(self, batch: SubtitleBatch) -> str:
        """
        Build the prompt for a batch.

        Args:
            batch: Batch of merged subtitles

        Returns:
            Prompt text ending with the serialized batch
        """
        source = self.settings.translation_source_language
        target = self.settings.translation_target_language
        payload = json.dumps(
            self.serialize_batch(batch.items), ensure_ascii=False, indent=2
        )
        field_order = " > ".join(RESPONSE_FIELDS)
        example_output = self.example_output(target)

        prompt = (
            f"You are a professional multilingual subtitle assistant. "
            f"Process the input strictly as follows.\n\n"
            f"1. PROCESSING RULES:\n"
            f"- Keep the original timestamps (startTime/endTime) unchanged\n"
            f"- The text fields are machine transcriptions of {source} speech and contain errors. "
            f"Use all of them as context and correct each one (correctedText field)\n"
            f"- Produce an accurate, fluent {target} translation of each corrected text "
            f"(translation field)\n"
            f"- Keep all time values as integers\n"
            f"- Return exactly one object per input item, in the same order\n\n"
            f"2. JSON RULES:\n"
            f"- Use double quotes for all strings\n"
            f"- No trailing commas\n"
            f"- Escape special characters correctly\n"
            f"- Remove line breaks inside strings\n"
            f"- Keep the field order strictly: {field_order}\n"
            f"- Do not repeat the original text field\n\n"
            f"3. INPUT EXAMPLE:\n"
            f"{json.dumps(EXAMPLE_INPUT, ensure_ascii=False, indent=2)}\n\n"
            f"4. OUTPUT EXAMPLE:\n"
            f"```json\n{json.dumps(example_output, ensure_ascii=False, indent=2)}\n```\n\n"
            f"Return ONLY the JSON array for the input below.\n\n"
            f"{BATCH_PAYLOAD_MARKER}\n{payload}\n"
        )

        logger.debug(
            f"Built prompt for batch {batch.label} ({len(batch)} subtitles, {len(prompt)} chars)"
        )
        return prompt
