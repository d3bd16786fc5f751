"""Redis Pub/Sub broadcaster for cross-process cache synchronisation.

Announcements are published as JSON on <channel_prefix>:<entity>. Every
process pattern-subscribes to <channel_prefix>:* and dispatches received
messages to its local listeners, including messages it published itself.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any

import redis.asyncio as redis

from tableacl.core.constants import CHANNEL_SEP
from tableacl.infrastructure.messaging.base import BroadcasterBase
from tableacl.infrastructure.messaging.protocol import BroadcastMessage

if TYPE_CHECKING:
    from tableacl.core.config import Settings

logger = logging.getLogger(__name__)

# Backoff bounds (seconds) for resubscribing after Redis connection loss
RECONNECT_DELAY = 1.0
MAX_RECONNECT_DELAY = 30.0


class RedisBroadcaster(BroadcasterBase):
    """Publishes and receives broadcast messages over Redis pub/sub."""

    def __init__(
        self,
        channel_prefix: str,
        redis_client: redis.Redis | None = None,
        settings: "Settings | None" = None,
        node_id: str | None = None,
        reconnect_delay: float = RECONNECT_DELAY,
    ) -> None:
        """Initialize. Pass redis_client for DI/testing, or settings to connect on start()."""
        super().__init__(node_id=node_id)
        self.channel_prefix = channel_prefix
        self.redis = redis_client
        self.settings = settings
        self._connected = redis_client is not None
        self._pubsub: Any = None
        self._listen_task: asyncio.Task[None] | None = None
        self.reconnect_delay = reconnect_delay

    def _get_channel(self, entity: str) -> str:
        """Channel name for entity."""
        return f"{self.channel_prefix}{CHANNEL_SEP}{entity}"

    def is_available(self) -> bool:
        """Return True if Redis is connected."""
        return self._connected and self.redis is not None

    async def connect(self) -> None:
        """Establish Redis connection from settings if no client was injected."""
        if self._connected:
            return
        if self.redis is None and self.settings is not None:
            s = self.settings
            try:
                self.redis = redis.Redis(
                    host=s.redis_host,
                    port=s.redis_port,
                    db=s.redis_db,
                    password=s.redis_password.get_secret_value() if s.redis_password else None,
                    decode_responses=True,
                    socket_connect_timeout=s.redis_socket_timeout,
                )
                await self.redis.ping()
                self._connected = True
                logger.info("Redis broadcaster connected: %s:%s", s.redis_host, s.redis_port)
            except (redis.ConnectionError, redis.TimeoutError) as e:
                logger.warning("Redis broadcaster connection failed: %s", e)
                self._connected = False
                self.redis = None

    async def start(self) -> None:
        """Connect and start the background subscription loop.

        If Redis is down the loop keeps retrying with backoff, so a process
        started during an outage picks up broadcasts once Redis returns.
        """
        if self._listen_task is not None:
            return
        if self.redis is None and self.settings is None:
            logger.warning("Redis not configured, broadcasts will not be received")
            return
        await self.connect()
        if not self.is_available():
            logger.warning("Redis not available, subscription will be retried")
        self._listen_task = asyncio.create_task(self._listen())

    async def stop(self) -> None:
        """Cancel the subscription loop and close the connection."""
        if self._listen_task is not None:
            self._listen_task.cancel()
            try:
                await self._listen_task
            except asyncio.CancelledError:
                pass
            self._listen_task = None
        await self._close_pubsub()
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None
        self._connected = False
        logger.info("Redis broadcaster stopped")

    async def _publish(self, message: BroadcastMessage) -> bool:
        if not self.is_available() or self.redis is None:
            logger.warning(
                "Redis not available, dropping %s broadcast for %s",
                message.event.value,
                message.entity,
            )
            return False
        channel = self._get_channel(message.entity)
        try:
            await self.redis.publish(channel, json.dumps(message.to_dict()))
        except redis.RedisError:
            logger.exception("Failed to publish broadcast to %s", channel)
            return False
        logger.debug(
            "Published %s to %s: %s", message.event.value, channel, message.cache_key
        )
        return True

    async def _subscribe(self) -> None:
        await self.connect()
        if not self.is_available() or self.redis is None:
            raise redis.ConnectionError("Redis not available")
        self._pubsub = self.redis.pubsub()
        pattern = self._get_channel("*")
        await self._pubsub.psubscribe(pattern)
        logger.info("Subscribed to %s", pattern)

    async def _close_pubsub(self) -> None:
        if self._pubsub is None:
            return
        pubsub, self._pubsub = self._pubsub, None
        try:
            await pubsub.punsubscribe()
            await pubsub.aclose()
        except (redis.RedisError, OSError) as e:
            logger.warning("Broadcast subscription not closed cleanly: %s", e)

    async def _listen(self) -> None:
        """Receive and dispatch until cancelled, resubscribing after connection loss."""
        delay = self.reconnect_delay
        while True:
            try:
                await self._subscribe()
                delay = self.reconnect_delay
                async for message in self._pubsub.listen():
                    await self.handle_message(message)
                logger.warning("Broadcast subscription ended, resubscribing")
            except asyncio.CancelledError:
                logger.info("Broadcast listen task cancelled")
                raise
            except (redis.RedisError, OSError) as e:
                logger.warning(
                    "Broadcast subscription lost: %s; retrying in %.1fs", e, delay
                )
            await self._close_pubsub()
            await asyncio.sleep(delay)
            delay = min(delay * 2, MAX_RECONNECT_DELAY)

    async def handle_message(self, message: dict[str, Any]) -> None:
        """Parse one raw pub/sub message and dispatch it; malformed payloads are logged."""
        if message.get("type") != "pmessage":
            return
        try:
            data = json.loads(message["data"])
            parsed = BroadcastMessage.from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError):
            logger.exception("Failed to parse broadcast message")
            return
        await self.dispatch(parsed)
