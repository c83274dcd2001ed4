"""Persistent storage for per-video translation caches."""

import json
import logging
import os
import re
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from common.config import Settings, settings
from common.schemas import CacheBackend

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class CacheStore(ABC):
    """
    Key/value store holding one JSON object per video.

    Implementations never raise on storage failures: a failed read returns
    None (a cache miss) and a failed write returns False.
    """

    @abstractmethod
    async def load(self, key: str) -> Optional[Dict[str, Any]]:
        """Load the object stored under key, or None if absent or unreadable."""

    @abstractmethod
    async def save(self, key: str, data: Dict[str, Any]) -> bool:
        """Replace the object stored under key. Returns True on success."""

    async def close(self) -> None:
        """Release any connections held by the store."""


class FileCacheStore(CacheStore):
    """Stores each key as a JSON file, replaced atomically on write."""

    def __init__(self, storage_path: str):
        self._directory = Path(storage_path)

    def get_path(self, key: str) -> Path:
        """
        Generate the file path for a key.

        Args:
            key: Cache key, e.g. 'yt-subtitles-dQw4w9WgXcQ'

        Returns:
            Path to the JSON file
        """
        return self._directory / f"{_UNSAFE_FILENAME_CHARS.sub('_', key)}.json"

    async def load(self, key: str) -> Optional[Dict[str, Any]]:
        path = self.get_path(key)
        if not path.exists():
            return None

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"❌ Storage read error for {path}: {e}")
            return None

        if not isinstance(data, dict):
            logger.error(f"❌ Corrupted cache file {path}: expected an object")
            return None
        return data

    async def save(self, key: str, data: Dict[str, Any]) -> bool:
        path = self.get_path(key)
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # Write to a temporary file in the same directory, then swap it in
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=path.parent,
                prefix=f".{path.stem}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                json.dump(data, tmp, ensure_ascii=False, indent=2)
            os.replace(tmp_name, path)
            logger.info(f"💾 Saved cache file {path} ({len(data)} entries)")
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"❌ Storage write error for {path}: {e}")
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            return False


def create_cache_store(app_settings: Optional[Settings] = None) -> CacheStore:
    """
    Build the cache store selected by configuration.

    Args:
        app_settings: Settings override (defaults to the global settings)

    Returns:
        A FileCacheStore or RedisCacheStore
    """
    app_settings = app_settings or settings

    if app_settings.cache_backend == CacheBackend.REDIS:
        from common.redis_client import RedisCacheStore

        return RedisCacheStore(app_settings.redis_url)

    return FileCacheStore(app_settings.cache_storage_path)
