"""Resource store protocol (DIP). Implementations: LocalResourceStore, InMemoryResourceStore."""

from typing import Protocol


class ResourceStoreProtocol(Protocol):
    """Durable key/value store addressed by hierarchical paths (e.g. /table_acl/proj)."""

    async def get_resource(self, path: str) -> bytes | None:
        """Return stored bytes, or None when nothing is stored at path."""
        ...

    async def put_resource(self, path: str, content: bytes, timestamp: int) -> None:
        """Store content at path, replacing any previous value. timestamp is epoch ms."""
        ...

    async def get_resource_timestamp(self, path: str) -> int | None:
        """Return the write timestamp of path, or None when absent."""
        ...

    async def list_resources_recursively(self, prefix: str) -> list[str]:
        """Return every resource path under prefix, sorted."""
        ...

    def get_readable_resource_path(self, path: str) -> str:
        """Return a human-readable location for path (for log messages)."""
        ...
