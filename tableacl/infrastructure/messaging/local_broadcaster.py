"""In-process broadcaster: announcements are dispatched before announce() returns."""

from __future__ import annotations

from tableacl.infrastructure.messaging.base import BroadcasterBase
from tableacl.infrastructure.messaging.protocol import BroadcastMessage


class LocalBroadcaster(BroadcasterBase):
    """Delivers announcements to listeners registered in this process only.

    Managers sharing one LocalBroadcaster behave like peers on a real bus,
    which is how single-process deployments and tests run.
    """

    async def start(self) -> None:
        """Nothing to connect."""

    async def stop(self) -> None:
        """Nothing to release."""

    async def _publish(self, message: BroadcastMessage) -> bool:
        await self.dispatch(message)
        return True
