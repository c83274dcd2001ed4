"""Redis-backed storage for per-video translation caches."""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import RedisError

from common.cache_store import CacheStore

logger = logging.getLogger(__name__)


class RedisCacheStore(CacheStore):
    """Async Redis store keeping each video's cache as one JSON string."""

    def __init__(self, redis_url: str):
        self.redis_url = redis_url
        self.client: Optional[Redis] = None
        self.connected: bool = False

    async def connect(self) -> None:
        """Establish connection to Redis."""
        try:
            self.client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            await asyncio.wait_for(self.client.ping(), timeout=5.0)
            self.connected = True
            logger.info("✅ Connected to Redis successfully")
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            logger.error(f"Failed to connect to Redis: {e}")
            logger.warning("Translation caches will not be persisted - Redis unavailable")
            self.connected = False

    async def ensure_connected(self) -> bool:
        """
        Connect on first use.

        Returns:
            True if connected, False otherwise
        """
        if self.connected and self.client:
            return True
        await self.connect()
        return self.connected

    async def close(self) -> None:
        """Close connection to Redis."""
        if self.client:
            try:
                await self.client.aclose()
            except RedisError as e:
                logger.warning(f"Error closing Redis client: {e}")
            finally:
                self.connected = False
                logger.info("Disconnected from Redis")

    async def load(self, key: str) -> Optional[Dict[str, Any]]:
        if not await self.ensure_connected():
            logger.warning(f"Redis unavailable - treating {key} as a cache miss")
            return None

        try:
            raw = await self.client.get(key)
        except RedisError as e:
            logger.error(f"❌ Storage read error for {key}: {e}")
            return None

        if raw is None:
            return None

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"❌ Corrupted cache entry {key}: {e}")
            return None

        if not isinstance(data, dict):
            logger.error(f"❌ Corrupted cache entry {key}: expected an object")
            return None
        return data

    async def save(self, key: str, data: Dict[str, Any]) -> bool:
        if not await self.ensure_connected():
            logger.warning(f"Redis unavailable - cannot save {key}")
            return False

        try:
            # A single SET replaces the whole map at once
            await self.client.set(key, json.dumps(data, ensure_ascii=False))
            logger.info(f"💾 Saved {key} to Redis ({len(data)} entries)")
            return True
        except (RedisError, TypeError, ValueError) as e:
            logger.error(f"❌ Storage write error for {key}: {e}")
            return False
