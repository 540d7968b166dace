"""
Realtime fan-out of inventory and catalog changes over WebSockets.

Two layers:
  - ConnectionManager holds this process's sockets and broadcasts to them.
  - RealtimeNotifier publishes to a Redis channel so every API process
    receives the message; relay() runs in each process, subscribed to the
    channel, and hands messages to its local ConnectionManager. It
    resubscribes after Redis errors. Whenever the subscription is not live,
    RealtimeNotifier also broadcasts locally.

Delivery is best effort: a socket that fails a send is dropped, a Redis
error is logged, and no caller ever sees an exception from publish().
Clients re-fetch state when they reconnect.
"""

import asyncio
import json
from contextlib import suppress

import redis.asyncio as redis
from fastapi import WebSocket

from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import record_broadcast, realtime_connections
from app.infrastructure.redis_client import get_redis
from app.services.interfaces.notifier import Notifier

logger = get_logger(__name__)
settings = get_settings()


class ConnectionManager(Notifier):
    """WebSocket connections held by this process."""

    def __init__(self):
        self.active_connections: list[WebSocket] = []

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.active_connections.append(websocket)
        realtime_connections.set(len(self.active_connections))
        logger.info("websocket_connected", connections=len(self.active_connections))

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)
        realtime_connections.set(len(self.active_connections))
        logger.info("websocket_disconnected", connections=len(self.active_connections))

    async def publish(self, message: dict) -> None:
        disconnected = []

        # Iterate over a copy: connect/disconnect may run between sends
        for websocket in list(self.active_connections):
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.warning("websocket_send_failed", error=str(e))
                disconnected.append(websocket)

        for websocket in disconnected:
            self.disconnect(websocket)

        record_broadcast(message.get("type", "unknown"), "local")


class RealtimeNotifier(Notifier):
    """
    Publishes through Redis pub/sub when available, else locally.

    While this process has no live channel subscription (relay not started,
    reconnecting, or Redis down), messages are also handed to the local hub
    so this process's sockets keep receiving updates.
    """

    def __init__(
        self,
        manager: ConnectionManager,
        channel: str = settings.REALTIME_CHANNEL,
        retry_seconds: float = settings.REDIS_RETRY_SECONDS,
    ):
        self.manager = manager
        self.channel = channel
        self.retry_seconds = retry_seconds
        self.relaying = False

    async def publish(self, message: dict) -> None:
        client = await get_redis()
        if client is not None:
            try:
                await client.publish(self.channel, json.dumps(message))
                record_broadcast(message.get("type", "unknown"), "redis")
                if self.relaying:
                    return
            except redis.RedisError as e:
                logger.error("realtime_publish_failed", channel=self.channel, error=str(e))

        await self.manager.publish(message)

    async def relay(self) -> None:
        """Forward channel messages to local sockets until cancelled, resubscribing after Redis errors."""
        if not settings.REDIS_ENABLED:
            return

        while True:
            client = await get_redis()
            if client is not None:
                await self._relay_once(client)
            await asyncio.sleep(self.retry_seconds)

    async def _relay_once(self, client: redis.Redis) -> None:
        pubsub = client.pubsub()
        try:
            await pubsub.subscribe(self.channel)
            self.relaying = True
            logger.info("realtime_relay_started", channel=self.channel)
            async for item in pubsub.listen():
                if item.get("type") != "message":
                    continue
                try:
                    message = json.loads(item["data"])
                except (TypeError, ValueError):
                    logger.warning("realtime_message_invalid", data=str(item.get("data"))[:200])
                    continue
                await self.manager.publish(message)
        except redis.RedisError as e:
            logger.error(
                "realtime_relay_interrupted",
                channel=self.channel,
                error=str(e),
                retry_in_seconds=self.retry_seconds,
            )
        finally:
            self.relaying = False
            with suppress(redis.RedisError):
                await pubsub.aclose()


manager = ConnectionManager()
notifier = RealtimeNotifier(manager)
