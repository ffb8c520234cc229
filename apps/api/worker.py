"""Moderation worker process entrypoint."""

import asyncio
import logging
import signal

from sqlalchemy import text

from config import settings
from database import async_session_maker, engine
from logging_config import setup_logging
from moderation.analyzer import build_content_analyzer
from moderation.record_store import SqlRecordStore
from moderation.worker import ModerationWorker
from services.event_bus import RedisEventBus

logger = logging.getLogger("scout.worker")


async def run() -> None:
    bus = RedisEventBus.from_url(settings.REDIS_URL)
    analyzer = build_content_analyzer(settings)
    if analyzer.test_mode:
        logger.warning("No moderation API key configured; videos will be auto-approved")

    worker = ModerationWorker(
        bus,
        SqlRecordStore(async_session_maker),
        analyzer,
        subject=settings.MODERATION_UPLOADED_SUBJECT,
        result_subject=settings.MODERATION_RESULT_SUBJECT,
        publish_results=settings.MODERATION_PUBLISH_RESULTS,
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    try:
        await bus.ping()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        await worker.start()
        logger.info("Moderation worker started", extra={"provider": analyzer.provider})
        await stop_event.wait()
        logger.info("Shutting down moderation worker")
        await worker.stop()
    finally:
        await bus.close()
        await engine.dispose()
    logger.info("Moderation worker stopped")


def main():
    setup_logging(service="ai-moderation-worker")
    try:
        asyncio.run(run())
    except Exception:
        logger.critical("Moderation worker failed to start", exc_info=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
