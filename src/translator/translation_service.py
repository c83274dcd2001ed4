"""Translator backends performing one free-form text completion per prompt."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

from openai import (
    APIStatusError,
    AsyncOpenAI,
    AuthenticationError,
    BadRequestError,
    NotFoundError,
    PermissionDeniedError,
)

from common.config import Settings, settings
from common.retry_utils import PermanentError
from common.schemas import TranslatorType

logger = logging.getLogger(__name__)

# Model used when TRANSLATOR_MODEL is not set
DEFAULT_MODELS: Dict[TranslatorType, str] = {
    TranslatorType.OPENAI: "gpt-4o-mini",
    TranslatorType.DOUBAO: "doubao",
    TranslatorType.QWEN: "qwen",
    TranslatorType.DEEPSEEK: "deepseek",
}

# Marker the prompt places in front of the batch payload
BATCH_PAYLOAD_MARKER = "SUBTITLES TO PROCESS:"


class TranslatorUnavailableError(PermanentError):
    """Raised when the translator reports an unrecoverable failure (no response)."""

    pass


class Translator(ABC):
    """Capability interface for a text-completion backend."""

    @abstractmethod
    async def translate(self, prompt: str) -> Optional[str]:
        """
        Run one completion.

        Returns:
            Response text, or None for an unrecoverable failure

        Raises:
            Exception: Any raised error is a transient failure eligible for retry
        """

    async def cleanup(self) -> None:
        """Release per-call resources. Called after every translate()."""

    async def close(self) -> None:
        """Release long-lived resources when the owning session ends."""


class OpenAICompatibleTranslator(Translator):
    """Translator for any backend speaking the OpenAI chat completions API."""

    # Client errors that will not go away by asking again
    UNRECOVERABLE_ERRORS = (
        AuthenticationError,
        PermissionDeniedError,
        BadRequestError,
        NotFoundError,
    )

    def __init__(
        self,
        translator_type: TranslatorType = TranslatorType.OPENAI,
        app_settings: Optional[Settings] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.settings = app_settings or settings
        self.translator_type = translator_type
        self.model = self.settings.translator_model or DEFAULT_MODELS[translator_type]
        # Retries are owned by the batch scheduler
        self.client = client or AsyncOpenAI(
            api_key=self.settings.translator_api_key,
            base_url=self.settings.translator_base_url,
            timeout=self.settings.translator_timeout,
            max_retries=0,
        )
        logger.info(
            f"Initialized {translator_type.value} translator with model: {self.model}"
        )

    async def translate(self, prompt: str) -> Optional[str]:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.settings.translator_temperature,
                max_tokens=self.settings.translator_max_tokens,
            )
        except self.UNRECOVERABLE_ERRORS as e:
            logger.error(f"❌ {self.translator_type.value} translation failed: {e}")
            return None
        except APIStatusError as e:
            logger.warning(
                f"⚠️  {self.translator_type.value} returned status {e.status_code}: {e}"
            )
            raise

        if not response.choices:
            raise ValueError("Translator returned no choices in response")

        choice = response.choices[0]
        content = choice.message.content
        if not content:
            raise ValueError(
                f"Translator returned empty content (finish_reason: {choice.finish_reason})"
            )

        if choice.finish_reason == "length":
            logger.warning(
                f"⚠️  Response was truncated (finish_reason=length). "
                f"Received {len(content)} characters but may be incomplete."
            )

        return content

    async def close(self) -> None:
        await self.client.close()


class MockTranslator(Translator):
    """
    Offline translator echoing the batch back in the expected response format.

    Used when no API key is configured, so the pipeline can be exercised end
    to end without a backend.
    """

    def __init__(self, target_language: str = "translated"):
        self.target_language = target_language
        self.call_count = 0

    async def translate(self, prompt: str) -> Optional[str]:
        self.call_count += 1
        _, _, payload = prompt.partition(BATCH_PAYLOAD_MARKER)
        items = json.loads(payload.strip() or "[]")
        results = [
            {
                "startTime": item["startTime"],
                "endTime": item["endTime"],
                "correctedText": item["text"],
                "translation": f"[{self.target_language}] {item['text']}",
            }
            for item in items
        ]
        return "```json\n" + json.dumps(results, ensure_ascii=False, indent=2) + "\n```"


def create_translator(
    translator_type: Optional[TranslatorType] = None,
    app_settings: Optional[Settings] = None,
) -> Translator:
    """
    Build the translator selected by configuration.

    Args:
        translator_type: Backend to use (defaults to settings.translator_type)
        app_settings: Settings override (defaults to the global settings)

    Returns:
        Translator instance
    """
    app_settings = app_settings or settings
    translator_type = translator_type or app_settings.translator_type

    if translator_type == TranslatorType.MOCK:
        return MockTranslator(app_settings.translation_target_language)

    if not app_settings.translator_api_key:
        logger.warning(
            "Translator API key not configured - translator will run in mock mode"
        )
        return MockTranslator(app_settings.translation_target_language)

    return OpenAICompatibleTranslator(translator_type, app_settings)
