"""Per-video cache of corrected and translated subtitle texts."""

import logging
from typing import Dict, Iterable, Optional, Tuple

from pydantic import ValidationError

from common.cache_store import CacheStore
from common.schemas import TranslationRecord
from common.string_utils import normalize_text

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "yt-subtitles-"


class TranslationCache:
    """
    In-memory map from original subtitle text to its TranslationRecord.

    Bound to one video. Lookups try the exact text first and then fall back
    to a linear scan comparing normalized keys, which is fine for the few
    hundred entries a video produces.
    """

    def __init__(
        self,
        video_id: str,
        store: CacheStore,
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ):
        self.video_id = video_id
        self.store = store
        self.storage_key = f"{key_prefix}{video_id}"
        self._records: Dict[str, TranslationRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, text: str) -> bool:
        return text in self._records

    def get(self, text: str) -> Optional[TranslationRecord]:
        """
        Look up the record for a subtitle text.

        Args:
            text: Original subtitle text

        Returns:
            Exact match, else the first fuzzy match, else None. An exact
            match without corrected text yields to a complete fuzzy match.
        """
        exact = self._records.get(text)
        if exact is not None and exact.corrected_text:
            return exact

        wanted = normalize_text(text)
        if not wanted:
            return exact

        fallback = exact
        for key, candidate in self._records.items():
            if key == text or normalize_text(key) != wanted:
                continue
            if candidate.corrected_text:
                return candidate
            if fallback is None:
                fallback = candidate
        return fallback

    def set(self, text: str, record: TranslationRecord) -> None:
        """Insert or overwrite the record for a text."""
        self._records[text] = record

    def set_many(self, entries: Iterable[Tuple[str, TranslationRecord]]) -> None:
        """
        Insert a batch of records as one group.

        The entries are materialized before the map is touched, so a failure
        while producing them leaves the cache unchanged.
        """
        staged = dict(entries)
        self._records.update(staged)

    def clear(self) -> None:
        self._records.clear()

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        """Serialize in the persisted form: {text: {correctedText, translation}}."""
        return {text: record.to_storage() for text, record in self._records.items()}

    async def load_for_video(self) -> bool:
        """
        Load the persisted map for this video, replacing the in-memory one.

        Returns:
            True if a stored map was found (even an incomplete one)
        """
        data = await self.store.load(self.storage_key)
        if data is None:
            return False

        records: Dict[str, TranslationRecord] = {}
        for text, value in data.items():
            try:
                records[text] = TranslationRecord.model_validate(value)
            except ValidationError as e:
                logger.warning(f"Skipping invalid cached entry for {text!r}: {e}")

        self._records = records
        logger.info(
            f"📂 Loaded {len(records)} cached translations for video {self.video_id}"
        )
        return True

    async def persist_for_video(self) -> bool:
        """
        Write the whole map for this video.

        Returns:
            True on success; failures are logged and dropped
        """
        saved = await self.store.save(self.storage_key, self.to_dict())
        if not saved:
            logger.warning(
                f"⚠️  Failed to persist translations for video {self.video_id}"
            )
        return saved
