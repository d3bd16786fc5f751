"""Resource store factory: creates local or in-memory backend from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tableacl.infrastructure.persistence.protocol import ResourceStoreProtocol

if TYPE_CHECKING:
    from tableacl.core.config import Settings


class ResourceStoreFactory:
    """Factory for resource store instances based on configuration."""

    @staticmethod
    def create_resource_store(settings: "Settings | None" = None) -> ResourceStoreProtocol:
        """Create resource store from settings.

        Args:
            settings: Application settings; if None, uses get_settings().

        Returns:
            LocalResourceStore or InMemoryResourceStore.

        Raises:
            ValueError: Unknown backend or missing required config.
        """
        from tableacl.core.config import get_settings

        s = settings or get_settings()
        backend = s.store_backend.lower()

        if backend == "local":
            from tableacl.infrastructure.persistence.local_store import (
                LocalResourceStore,
            )

            if not s.store_root:
                raise ValueError("STORE_ROOT required for local backend")
            return LocalResourceStore(store_root=s.store_root)
        if backend == "memory":
            from tableacl.infrastructure.persistence.memory_store import (
                InMemoryResourceStore,
            )

            return InMemoryResourceStore()
        raise ValueError(
            f"Unknown store backend: {backend}. Supported: 'local', 'memory'"
        )
