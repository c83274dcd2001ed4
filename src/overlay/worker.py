"""Command-line entry point: translate the captions of one video."""

import argparse
import asyncio
import logging
from typing import List, Optional

from common.cache_store import create_cache_store
from common.config import settings
from common.logging_config import setup_service_logging
from common.schemas import EventType, PipelineEvent
from overlay.progress import ProgressReporter
from overlay.session_manager import SessionManager
from translator.translation_service import create_translator

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Translate a video's captions and cache the bilingual result."
    )
    parser.add_argument("video", help="Watch URL, short link, or video id")
    parser.add_argument("--track-url", help="Caption track URL (skips discovery)")
    parser.add_argument(
        "--at",
        type=float,
        action="append",
        default=[],
        metavar="SECONDS",
        help="Print the caption lines shown at this playback time (repeatable)",
    )
    return parser.parse_args(argv)


def log_pipeline_failure(event: PipelineEvent) -> None:
    logger.error(
        f"❌ Pipeline failed for video {event.video_id}: "
        f"{event.payload.get('error_message')}"
    )


async def run(args: argparse.Namespace) -> int:
    translator = create_translator()
    cache_store = create_cache_store()
    manager = SessionManager(translator, cache_store)
    reporter = ProgressReporter()
    reporter.attach(manager.publisher)
    manager.publisher.subscribe(log_pipeline_failure, EventType.PIPELINE_FAILED)

    try:
        session = await manager.switch_video(args.video)
        if session is None:
            logger.error(f"❌ Could not find a video id in {args.video!r}")
            return 2

        result = await session.start(args.track_url)
        if result is None:
            return 1

        for seconds in args.at:
            for line in await session.on_time_update(seconds):
                print(f"[{seconds:.1f}s] {line.primary_text}")
                print(f"[{seconds:.1f}s] {line.secondary_text}")

        return 0 if result.completed else 1
    finally:
        reporter.detach()
        await manager.close()
        await translator.close()
        await cache_store.close()


async def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logger.info("🚀 Starting caption overlay worker")
    logger.info(f"🤖 Translator: {settings.translator_type.value}")
    return await run(args)


def cli() -> None:
    setup_service_logging("overlay")
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
