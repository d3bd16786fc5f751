"""Process-local resource store. Shared by every manager that receives the same instance."""

from __future__ import annotations


class InMemoryResourceStore:
    """Dict-backed resource store (path -> (content, timestamp)).

    Nothing survives the process; use for tests and single-process setups.
    """

    def __init__(self) -> None:
        self._resources: dict[str, tuple[bytes, int]] = {}

    async def get_resource(self, path: str) -> bytes | None:
        entry = self._resources.get(path)
        return entry[0] if entry else None

    async def put_resource(self, path: str, content: bytes, timestamp: int) -> None:
        self._resources[path] = (bytes(content), timestamp)

    async def get_resource_timestamp(self, path: str) -> int | None:
        entry = self._resources.get(path)
        return entry[1] if entry else None

    async def list_resources_recursively(self, prefix: str) -> list[str]:
        folder = prefix.rstrip("/") + "/"
        return sorted(p for p in self._resources if p.startswith(folder))

    def get_readable_resource_path(self, path: str) -> str:
        return f"memory://{path}"
