"""Broadcast messages, listener base class and broadcaster protocol.

A broadcaster delivers two kinds of notification to registered listeners:
clear-all (drop every cached manager) and entity change (one cache key of
one entity changed). Delivery is at-least-once with no ordering across keys.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Protocol


class BroadcastEvent(str, Enum):
    """Kinds of broadcast notification."""

    CLEAR_ALL = "clear_all"
    CREATE = "create"
    UPDATE = "update"
    DROP = "drop"


@dataclass(frozen=True)
class BroadcastMessage:
    """Broadcast payload (JSON on the wire for the Redis backend)."""

    entity: str
    event: BroadcastEvent
    cache_key: str | None = None
    origin: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON publish."""
        data = asdict(self)
        data["event"] = self.event.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BroadcastMessage:
        """Deserialize from a pub/sub message."""
        data = dict(data)
        data["event"] = BroadcastEvent(data["event"])
        return cls(**data)


class BroadcastListener:
    """Receives broadcast notifications. Subclasses override what they handle."""

    async def on_clear_all(self, broadcaster: BroadcasterProtocol) -> None:
        """Called on a clear-all announcement."""

    async def on_entity_change(
        self,
        broadcaster: BroadcasterProtocol,
        entity: str,
        event: BroadcastEvent,
        cache_key: str,
    ) -> None:
        """Called when cache_key of an entity this listener registered for changed."""


class BroadcasterProtocol(Protocol):
    """Protocol for broadcast backends (in-process, Redis pub/sub)."""

    node_id: str

    async def start(self) -> None:
        """Connect and begin receiving announcements."""
        ...

    async def stop(self) -> None:
        """Stop receiving and release connections."""
        ...

    def register_listener(self, listener: BroadcastListener, *entities: str) -> None:
        """Register listener for entity change events of the given entities."""
        ...

    def unregister_listener(self, listener: BroadcastListener) -> bool:
        """Remove listener from every entity. Returns True if it was registered."""
        ...

    async def announce(
        self, entity: str, event: BroadcastEvent, cache_key: str
    ) -> bool:
        """Publish an entity change. Returns False if it could not be published."""
        ...

    async def announce_clear_all(self) -> bool:
        """Publish a clear-all. Returns False if it could not be published."""
        ...
