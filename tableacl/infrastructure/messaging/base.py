"""Listener bookkeeping and dispatch shared by all broadcaster backends."""

from __future__ import annotations

import logging
from uuid import uuid4

from tableacl.core.constants import BROADCAST_ENTITY_ALL
from tableacl.infrastructure.messaging.protocol import (
    BroadcastEvent,
    BroadcastListener,
    BroadcastMessage,
)

logger = logging.getLogger(__name__)


class BroadcasterBase:
    """Holds listeners per entity and dispatches received messages to them.

    Each listener call is isolated: an exception raised by one listener is
    logged and never reaches the announcer or the other listeners.
    Subclasses implement _publish().
    """

    def __init__(self, node_id: str | None = None) -> None:
        self.node_id = node_id or uuid4().hex
        self._listeners: dict[str, list[BroadcastListener]] = {}

    def register_listener(self, listener: BroadcastListener, *entities: str) -> None:
        """Register listener for each entity. Registering twice is a no-op."""
        if not entities:
            raise ValueError("At least one entity is required to register a listener")
        for entity in entities:
            listeners = self._listeners.setdefault(entity, [])
            if listener not in listeners:
                listeners.append(listener)
        logger.debug("Registered %s for %s", type(listener).__name__, ", ".join(entities))

    def unregister_listener(self, listener: BroadcastListener) -> bool:
        """Remove listener from every entity. Returns True if it was registered."""
        removed = False
        for entity in list(self._listeners):
            listeners = self._listeners[entity]
            if listener in listeners:
                listeners.remove(listener)
                removed = True
            if not listeners:
                del self._listeners[entity]
        return removed

    def listener_count(self, entity: str | None = None) -> int:
        """Return the number of distinct listeners (for one entity, or overall)."""
        if entity is not None:
            return len(self._listeners.get(entity, ()))
        return len(self._all_listeners())

    def _all_listeners(self) -> list[BroadcastListener]:
        unique: list[BroadcastListener] = []
        for listeners in self._listeners.values():
            for listener in listeners:
                if listener not in unique:
                    unique.append(listener)
        return unique

    async def announce(
        self, entity: str, event: BroadcastEvent, cache_key: str
    ) -> bool:
        """Publish an entity change for cache_key."""
        if event == BroadcastEvent.CLEAR_ALL:
            raise ValueError("Use announce_clear_all() for clear-all announcements")
        return await self._publish(
            BroadcastMessage(
                entity=entity, event=event, cache_key=cache_key, origin=self.node_id
            )
        )

    async def announce_clear_all(self) -> bool:
        """Publish a clear-all to every listener of every entity."""
        return await self._publish(
            BroadcastMessage(
                entity=BROADCAST_ENTITY_ALL,
                event=BroadcastEvent.CLEAR_ALL,
                origin=self.node_id,
            )
        )

    async def _publish(self, message: BroadcastMessage) -> bool:
        raise NotImplementedError

    async def dispatch(self, message: BroadcastMessage) -> None:
        """Deliver a received message to the matching local listeners."""
        if message.event == BroadcastEvent.CLEAR_ALL:
            for listener in self._all_listeners():
                try:
                    await listener.on_clear_all(self)
                except Exception:
                    logger.exception(
                        "Listener %s failed on clear-all", type(listener).__name__
                    )
            return

        if message.cache_key is None:
            logger.warning(
                "Ignoring %s broadcast for %s without cache key",
                message.event.value,
                message.entity,
            )
            return
        for listener in list(self._listeners.get(message.entity, ())):
            try:
                await listener.on_entity_change(
                    self, message.entity, message.event, message.cache_key
                )
            except Exception:
                logger.exception(
                    "Listener %s failed on %s of %s:%s",
                    type(listener).__name__,
                    message.event.value,
                    message.entity,
                    message.cache_key,
                )
