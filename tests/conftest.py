"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path
from typing import List

import fakeredis.aioredis
import pytest
import pytest_asyncio

# Add src directory to Python path for imports
project_root = Path(__file__).parent.parent
src_path = project_root / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from common.cache_store import FileCacheStore
from common.config import Settings
from common.event_publisher import EventPublisher
from common.redis_client import RedisCacheStore
from common.schemas import CacheBackend, PipelineEvent, TranslatorType
from common.subtitle_parser import MergedSubtitle, RawCue


@pytest_asyncio.fixture
async def fake_redis_client():
    """
    Fake Redis client using fakeredis for realistic Redis behavior.

    Provides a Redis-like interface without requiring a Redis server.
    """
    fake_redis = fakeredis.aioredis.FakeRedis(decode_responses=True, encoding="utf-8")
    yield fake_redis
    await fake_redis.flushall()
    await fake_redis.aclose()


@pytest_asyncio.fixture
async def redis_cache_store(fake_redis_client):
    """RedisCacheStore wired to fakeredis."""
    store = RedisCacheStore("redis://localhost:6379")
    # Replace the store's Redis connection with our fake one
    store.client = fake_redis_client
    store.connected = True
    yield store
    store.connected = False


@pytest.fixture
def file_cache_store(tmp_path) -> FileCacheStore:
    """FileCacheStore writing into a temporary directory."""
    return FileCacheStore(str(tmp_path / "cache"))


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings with no pauses and a small retry budget for fast tests."""
    return Settings(
        translator_type=TranslatorType.MOCK,
        translator_api_key=None,
        translation_batch_size=2,
        translation_batch_interval_ms=0,
        translation_max_retries=3,
        translation_retry_base_delay_ms=0,
        cache_backend=CacheBackend.FILE,
        cache_storage_path=str(tmp_path / "cache"),
    )


@pytest.fixture
def publisher() -> EventPublisher:
    return EventPublisher()


@pytest.fixture
def recorded_events(publisher) -> List[PipelineEvent]:
    """Every event published on the publisher fixture, in order."""
    events: List[PipelineEvent] = []
    publisher.subscribe(events.append)
    return events


@pytest.fixture
def sample_cues() -> List[RawCue]:
    return [
        RawCue(start_ms=0, end_ms=1500, text="hi"),
        RawCue(start_ms=1500, end_ms=2500, text="there"),
        RawCue(start_ms=20000, end_ms=22000, text="welcome back"),
    ]


@pytest.fixture
def sample_subtitles() -> List[MergedSubtitle]:
    return [
        MergedSubtitle(start_ms=0, end_ms=2500, text="hi there"),
        MergedSubtitle(start_ms=3000, end_ms=5000, text="Hey, welcome!"),
        MergedSubtitle(start_ms=5000, end_ms=8000, text="today we talk about AI"),
        MergedSubtitle(start_ms=9000, end_ms=12000, text="and why it matters"),
        MergedSubtitle(start_ms=12000, end_ms=15000, text="let's get started"),
    ]


@pytest.fixture
def timed_text_xml() -> str:
    return (
        '<?xml version="1.0" encoding="utf-8" ?><transcript>'
        '<text start="0" dur="1.5">hi</text>'
        '<text start="1.5" dur="1.0">there</text>'
        '<text start="20" dur="2">it&amp;#39;s   me</text>'
        "</transcript>"
    )
