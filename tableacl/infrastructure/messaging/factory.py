"""Broadcaster factory: creates the in-process or Redis backend from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tableacl.core.constants import CHANNEL_SEP
from tableacl.infrastructure.messaging.protocol import BroadcasterProtocol

if TYPE_CHECKING:
    from tableacl.core.config import Settings


class BroadcasterFactory:
    """Factory for broadcaster instances based on configuration."""

    @staticmethod
    def create_broadcaster(settings: "Settings | None" = None) -> BroadcasterProtocol:
        """Create broadcaster from settings.

        Redis channels are scoped by deployment_id so separate deployments
        sharing one Redis never see each other's announcements.

        Raises:
            ValueError: Unknown backend.
        """
        from tableacl.core.config import get_settings

        s = settings or get_settings()
        backend = s.broadcast_backend.lower()

        if backend == "local":
            from tableacl.infrastructure.messaging.local_broadcaster import (
                LocalBroadcaster,
            )

            return LocalBroadcaster()
        if backend == "redis":
            from tableacl.infrastructure.messaging.redis_broadcaster import (
                RedisBroadcaster,
            )

            return RedisBroadcaster(
                channel_prefix=f"{s.broadcast_channel_prefix}{CHANNEL_SEP}{s.deployment_id}",
                settings=s,
            )
        raise ValueError(
            f"Unknown broadcast backend: {backend}. Supported: 'local', 'redis'"
        )
