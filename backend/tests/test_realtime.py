"""
Tests for realtime fan-out: local WebSocket broadcast and the notifier
fallback when Redis is not available.
"""

import asyncio
import json
from contextlib import suppress

import pytest
import redis.asyncio as redis
from fastapi.testclient import TestClient

from app.main import app
from app.services import realtime_service
from app.services.realtime_service import ConnectionManager, RealtimeNotifier, manager


class FakeWebSocket:
    def __init__(self, broken: bool = False):
        self.accepted = False
        self.broken = broken
        self.sent: list[dict] = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, message: dict):
        if self.broken:
            raise RuntimeError("connection closed")
        self.sent.append(message)


class FakeRedis:
    """In-process pub/sub server. `failures` subscriptions break before delivering."""

    def __init__(self, failures: int = 0):
        self.failures = failures
        self.published: list[tuple[str, str]] = []
        self.subscribers: list[asyncio.Queue] = []

    async def publish(self, channel: str, data: str) -> None:
        self.published.append((channel, data))
        for queue in self.subscribers:
            queue.put_nowait(data)

    def pubsub(self) -> "FakePubSub":
        return FakePubSub(self)


class FakePubSub:
    def __init__(self, server: FakeRedis):
        self.server = server
        self.queue: asyncio.Queue = asyncio.Queue()

    async def subscribe(self, channel: str) -> None:
        if self.server.failures:
            self.server.failures -= 1
            raise redis.ConnectionError("connection reset by peer")
        self.server.subscribers.append(self.queue)

    async def listen(self):
        yield {"type": "subscribe", "data": 1}
        while True:
            yield {"type": "message", "data": await self.queue.get()}

    async def aclose(self) -> None:
        if self.queue in self.server.subscribers:
            self.server.subscribers.remove(self.queue)


async def _wait_for(condition, timeout: float = 2.0) -> None:
    for _ in range(int(timeout / 0.01)):
        if condition():
            return
        await asyncio.sleep(0.01)
    raise AssertionError("condition not met in time")


@pytest.fixture
def fake_redis(monkeypatch) -> FakeRedis:
    server = FakeRedis()

    async def fake_get_redis():
        return server

    monkeypatch.setattr(realtime_service, "get_redis", fake_get_redis)
    monkeypatch.setattr(realtime_service.settings, "REDIS_ENABLED", True)
    return server


@pytest.mark.asyncio
async def test_publish_reaches_every_socket():
    local = ConnectionManager()
    sockets = [FakeWebSocket(), FakeWebSocket()]
    for ws in sockets:
        await local.connect(ws)

    await local.inventory_changed(7, 3)

    expected = {"type": "inventory-changed", "event_id": 7, "available_seats": 3, "sold_out": False}
    assert all(ws.accepted for ws in sockets)
    assert [ws.sent for ws in sockets] == [[expected], [expected]]


@pytest.mark.asyncio
async def test_failed_socket_is_dropped():
    local = ConnectionManager()
    healthy, dead = FakeWebSocket(), FakeWebSocket(broken=True)
    await local.connect(healthy)
    await local.connect(dead)

    # Must not raise
    await local.catalog_changed()

    assert local.active_connections == [healthy]
    assert healthy.sent == [{"type": "catalog-changed"}]


@pytest.mark.asyncio
async def test_publish_without_clients():
    await ConnectionManager().inventory_changed(1, 0)


@pytest.mark.asyncio
async def test_notifier_falls_back_to_local_broadcast():
    """With Redis disabled the notifier delivers to this process's sockets."""
    local = ConnectionManager()
    ws = FakeWebSocket()
    await local.connect(ws)

    await RealtimeNotifier(local).inventory_changed(5, 0)

    assert ws.sent == [{"type": "inventory-changed", "event_id": 5, "available_seats": 0, "sold_out": True}]


@pytest.mark.asyncio
async def test_relay_is_noop_without_redis():
    await RealtimeNotifier(ConnectionManager()).relay()


@pytest.mark.asyncio
async def test_relay_delivers_channel_messages_once(fake_redis):
    local = ConnectionManager()
    ws = FakeWebSocket()
    await local.connect(ws)
    notifier = RealtimeNotifier(local, channel="ticketing:test", retry_seconds=0)

    task = asyncio.create_task(notifier.relay())
    try:
        await _wait_for(lambda: notifier.relaying)
        await notifier.catalog_changed()
        await _wait_for(lambda: ws.sent)
        await asyncio.sleep(0.05)
    finally:
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

    assert fake_redis.published == [("ticketing:test", json.dumps({"type": "catalog-changed"}))]
    assert ws.sent == [{"type": "catalog-changed"}]
    assert notifier.relaying is False


@pytest.mark.asyncio
async def test_relay_resubscribes_after_redis_error(fake_redis):
    fake_redis.failures = 2
    local = ConnectionManager()
    ws = FakeWebSocket()
    await local.connect(ws)
    notifier = RealtimeNotifier(local, retry_seconds=0)

    task = asyncio.create_task(notifier.relay())
    try:
        await _wait_for(lambda: notifier.relaying)
        await notifier.inventory_changed(3, 10)
        await _wait_for(lambda: ws.sent)
    finally:
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

    assert fake_redis.failures == 0
    assert ws.sent == [{"type": "inventory-changed", "event_id": 3, "available_seats": 10, "sold_out": False}]


@pytest.mark.asyncio
async def test_publish_without_live_relay_still_reaches_local_sockets(fake_redis):
    """Redis is up but this process is not subscribed (yet): deliver locally too."""
    local = ConnectionManager()
    ws = FakeWebSocket()
    await local.connect(ws)

    await RealtimeNotifier(local).catalog_changed()

    assert len(fake_redis.published) == 1
    assert ws.sent == [{"type": "catalog-changed"}]


def test_websocket_disconnect_is_cleaned_up():
    client = TestClient(app)
    with client.websocket_connect("/api/v1/ws") as ws:
        ws.send_text("ping")
    assert manager.active_connections == []
