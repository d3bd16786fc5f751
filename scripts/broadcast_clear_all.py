"""Publish a clear-all broadcast for the configured deployment.

Every process listening on the same broadcast backend drops its table ACL
managers and rebuilds them from the resource store on next access.

Usage:
    python -m scripts.broadcast_clear_all
All imports use tableacl.*.
"""

import asyncio
import sys

from tableacl.core.config import get_settings
from tableacl.infrastructure.messaging import BroadcasterFactory


async def main() -> None:
    """Announce clear-all once and exit non-zero if it was not published."""
    settings = get_settings()
    if settings.broadcast_backend != "redis":
        print(
            "BROADCAST_BACKEND=local reaches only this process; set BROADCAST_BACKEND=redis",
            file=sys.stderr,
        )
        sys.exit(1)

    broadcaster = BroadcasterFactory.create_broadcaster(settings)
    await broadcaster.start()
    try:
        published = await broadcaster.announce_clear_all()
    finally:
        await broadcaster.stop()
    if not published:
        print("Clear-all was not published (Redis unavailable)", file=sys.stderr)
        sys.exit(1)
    print(f"Clear-all published for deployment {settings.deployment_id}")


if __name__ == "__main__":
    asyncio.run(main())
