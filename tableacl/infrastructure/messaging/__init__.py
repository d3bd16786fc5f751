"""Broadcast: in-process and Redis pub/sub backends.

Managers register a BroadcastListener per entity; announcements reach the
listeners of every process attached to the same bus.
"""

from tableacl.infrastructure.messaging.factory import BroadcasterFactory
from tableacl.infrastructure.messaging.local_broadcaster import LocalBroadcaster
from tableacl.infrastructure.messaging.protocol import (
    BroadcasterProtocol,
    BroadcastEvent,
    BroadcastListener,
    BroadcastMessage,
)

__all__ = [
    "BroadcastEvent",
    "BroadcastListener",
    "BroadcastMessage",
    "BroadcasterFactory",
    "BroadcasterProtocol",
    "LocalBroadcaster",
]
