"""Case-insensitive string-keyed cache that announces remote-visible writes.

Keys are normalised with str.lower() at the boundary. put_local() only
changes this process's view; put() also announces the key on the cache's
entity so peers reconcile. No eviction: the cache lives as long as its owner.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Generic, TypeVar

from tableacl.infrastructure.messaging.protocol import (
    BroadcasterProtocol,
    BroadcastEvent,
)

logger = logging.getLogger(__name__)

V = TypeVar("V")


def normalize_key(key: str) -> str:
    """Return the canonical cache form of key."""
    return key.lower()


class CaseInsensitiveStringCache(Generic[V]):
    """Unbounded str -> V mapping bound to one broadcast entity."""

    def __init__(self, broadcaster: BroadcasterProtocol, entity: str) -> None:
        self.broadcaster = broadcaster
        self.entity = entity
        self._entries: dict[str, V] = {}

    def get(self, key: str) -> V | None:
        """Return the cached value or None. Absence is never remapped here."""
        return self._entries.get(normalize_key(key))

    def put_local(self, key: str, value: V) -> None:
        """Update this process's view only (no announcement)."""
        self._entries[normalize_key(key)] = value

    async def put(self, key: str, value: V) -> bool:
        """Update locally, then announce CREATE or UPDATE for key.

        Returns:
            Whether the announcement was published. The local update stands either way.
        """
        normalized = normalize_key(key)
        event = BroadcastEvent.UPDATE if normalized in self._entries else BroadcastEvent.CREATE
        self._entries[normalized] = value
        published = await self.broadcaster.announce(self.entity, event, key)
        if not published:
            logger.warning(
                "Broadcast of %s %s:%s failed; peers stay stale until the next change",
                event.value,
                self.entity,
                key,
            )
        return published

    def clear(self) -> None:
        """Drop every local entry (no announcement)."""
        self._entries.clear()

    def keys(self) -> list[str]:
        """Return the normalised keys currently cached."""
        return list(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and normalize_key(key) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))
