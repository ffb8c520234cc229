"""Redis pub/sub event bus shared by the media API and the moderation worker."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set, Union

import redis.asyncio as redis
from redis.asyncio.client import PubSub

from config import settings

logger = logging.getLogger(__name__)

MessageHandler = Callable[[Union[bytes, str]], Awaitable[Any]]

POLL_TIMEOUT_SECONDS = 1.0


class Subscription:
    """
    Reads one subject and runs each inbound message as its own task.

    Stopping lets the current poll finish, unsubscribes, and then waits for
    in-flight handlers. Handlers are never cancelled.
    """

    def __init__(self, subject: str, pubsub: PubSub, handler: MessageHandler):
        self.subject = subject
        self._pubsub = pubsub
        self._handler = handler
        self._running = False
        self._reader: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()

    @property
    def active(self) -> bool:
        return self._running

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def start(self) -> None:
        self._running = True
        self._reader = asyncio.create_task(self._read_loop(), name=f"bus:{self.subject}")

    async def _read_loop(self) -> None:
        while self._running:
            try:
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=POLL_TIMEOUT_SECONDS,
                )
            except Exception:
                logger.exception("Event bus read failed for %s", self.subject)
                await asyncio.sleep(POLL_TIMEOUT_SECONDS)
                continue
            if not message or message.get("type") != "message":
                continue
            self._dispatch(message.get("data"))

    def _dispatch(self, data: Union[bytes, str]) -> None:
        task = asyncio.create_task(self._invoke(data))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _invoke(self, data: Union[bytes, str]) -> None:
        try:
            await self._handler(data)
        except Exception:
            logger.exception("Unhandled error in %s handler", self.subject)

    async def unsubscribe(self) -> None:
        self._running = False
        if self._reader is not None:
            await self._reader
            self._reader = None
        try:
            await self._pubsub.unsubscribe(self.subject)
        finally:
            await self._pubsub.aclose()
        if self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)


class RedisEventBus:
    """Publish/subscribe keyed by subject string, JSON payloads."""

    def __init__(self, client: redis.Redis):
        self._client = client

    @classmethod
    def from_url(cls, url: Optional[str] = None) -> "RedisEventBus":
        return cls(redis.from_url(url or settings.REDIS_URL))

    async def ping(self) -> bool:
        return bool(await self._client.ping())

    async def publish(self, subject: str, payload: Dict[str, Any]) -> int:
        """Publish a JSON payload; returns the number of receiving subscribers."""
        data = json.dumps(payload, default=str)
        receivers = await self._client.publish(subject, data)
        logger.debug("Published %s to %s (%s receivers)", payload.get("event_type"), subject, receivers)
        return int(receivers or 0)

    async def subscribe(self, subject: str, handler: MessageHandler) -> Subscription:
        pubsub = self._client.pubsub()
        await pubsub.subscribe(subject)
        subscription = Subscription(subject, pubsub, handler)
        subscription.start()
        return subscription

    async def close(self) -> None:
        await self._client.aclose()
