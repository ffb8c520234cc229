import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from services.event_bus import RedisEventBus


class FakePubSub:
    def __init__(self, messages):
        self.messages = list(messages)
        self.subscribe = AsyncMock()
        self.unsubscribe = AsyncMock()
        self.aclose = AsyncMock()

    async def get_message(self, ignore_subscribe_messages=False, timeout=0.0):
        await asyncio.sleep(0.01)
        if self.messages:
            return self.messages.pop(0)
        return None


def _message(data):
    return {"type": "message", "channel": b"media.video.uploaded", "pattern": None, "data": data}


def _client(pubsub=None):
    client = MagicMock()
    client.publish = AsyncMock(return_value=2)
    client.ping = AsyncMock(return_value=True)
    client.aclose = AsyncMock()
    client.pubsub.return_value = pubsub
    return client


async def _wait_for(condition, timeout=2.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not condition():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_publish_serializes_payload_as_json():
    client = _client()
    bus = RedisEventBus(client)

    receivers = await bus.publish("media.video.uploaded", {"event_type": "video.uploaded", "video_id": "v1"})

    assert receivers == 2
    subject, data = client.publish.await_args.args
    assert subject == "media.video.uploaded"
    assert json.loads(data) == {"event_type": "video.uploaded", "video_id": "v1"}


@pytest.mark.asyncio
async def test_subscription_dispatches_each_message():
    pubsub = FakePubSub([_message(b"first"), {"type": "subscribe", "data": 1}, _message(b"second")])
    handler = AsyncMock()
    bus = RedisEventBus(_client(pubsub))

    subscription = await bus.subscribe("media.video.uploaded", handler)
    await _wait_for(lambda: handler.await_count == 2)
    await subscription.unsubscribe()

    assert [call.args[0] for call in handler.await_args_list] == [b"first", b"second"]
    pubsub.subscribe.assert_awaited_once_with("media.video.uploaded")
    pubsub.unsubscribe.assert_awaited_once_with("media.video.uploaded")
    pubsub.aclose.assert_awaited_once()
    assert subscription.active is False


@pytest.mark.asyncio
async def test_handler_errors_do_not_stop_subscription():
    pubsub = FakePubSub([_message(b"bad"), _message(b"good")])
    handler = AsyncMock(side_effect=[RuntimeError("boom"), None])
    bus = RedisEventBus(_client(pubsub))

    subscription = await bus.subscribe("media.video.uploaded", handler)
    await _wait_for(lambda: handler.await_count == 2)
    await subscription.unsubscribe()

    assert handler.await_count == 2


@pytest.mark.asyncio
async def test_unsubscribe_waits_for_in_flight_handlers():
    finished = []

    async def slow_handler(data):
        await asyncio.sleep(0.1)
        finished.append(data)

    pubsub = FakePubSub([_message(b"slow")])
    bus = RedisEventBus(_client(pubsub))

    subscription = await bus.subscribe("media.video.uploaded", slow_handler)
    await _wait_for(lambda: subscription.in_flight == 1)
    await subscription.unsubscribe()

    assert finished == [b"slow"]
    assert subscription.in_flight == 0


@pytest.mark.asyncio
async def test_subscribe_failure_propagates():
    pubsub = FakePubSub([])
    pubsub.subscribe.side_effect = ConnectionError("redis down")
    bus = RedisEventBus(_client(pubsub))

    with pytest.raises(ConnectionError):
        await bus.subscribe("media.video.uploaded", AsyncMock())


@pytest.mark.asyncio
async def test_ping_and_close_delegate_to_client():
    client = _client()
    bus = RedisEventBus(client)

    assert await bus.ping() is True
    await bus.close()

    client.aclose.assert_awaited_once()
