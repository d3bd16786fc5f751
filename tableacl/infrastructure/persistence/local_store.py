"""Local filesystem resource store with path validation and atomic writes."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, cast

import aiofiles
import aiofiles.os

from tableacl.core.constants import META_SUFFIX, TEMP_PREFIX
from tableacl.infrastructure.exceptions import (
    ResourcePermissionError,
    ResourceReadError,
    ResourceWriteError,
)


def is_reserved_name(name: str) -> bool:
    """Return True for file names the store uses for its own bookkeeping."""
    lowered = name.lower()
    return lowered.endswith(META_SUFFIX) or lowered.startswith(TEMP_PREFIX)


class LocalResourceStore:
    """Filesystem resource store with atomic writes and path traversal protection.

    Resource path /table_acl/proj maps to <store_root>/table_acl/proj.
    Writes use temp file + replace, so readers in other processes see either
    the old or the new content. The write timestamp lives in a .meta.json sidecar.
    """

    def __init__(self, store_root: str) -> None:
        """Initialize local store.

        Args:
            store_root: Base directory for all resources.
        """
        self.store_root = Path(store_root).resolve()
        self.store_root.mkdir(parents=True, exist_ok=True, mode=0o750)

    def _get_full_path(self, path: str) -> Path:
        """Resolve and validate path under store_root.

        Raises:
            ResourcePermissionError: Traversal outside store_root, the root itself,
                or a name reserved for sidecars and temp files.
        """
        full_path = (self.store_root / path.lstrip("/")).resolve()
        try:
            full_path.relative_to(self.store_root)
        except ValueError as e:
            raise ResourcePermissionError(path, "path_validation") from e
        if full_path == self.store_root:
            raise ResourcePermissionError(path, "path_validation")
        if is_reserved_name(full_path.name):
            raise ResourcePermissionError(path, "reserved_name")
        return full_path

    @staticmethod
    def _meta_path(file_path: Path) -> Path:
        return file_path.with_name(file_path.name + META_SUFFIX)

    async def _read_metadata(self, file_path: Path) -> dict[str, Any]:
        """Read JSON sidecar or empty dict."""
        meta_path = self._meta_path(file_path)
        if not meta_path.exists():
            return {}
        async with aiofiles.open(meta_path, "r") as f:
            content = await f.read()
            result = json.loads(content)
            return cast(dict[str, Any], result) if isinstance(result, dict) else {}

    async def get_resource(self, path: str) -> bytes | None:
        """Return file content, or None when the file does not exist."""
        file_path = self._get_full_path(path)
        try:
            if not file_path.is_file():
                return None
            async with aiofiles.open(file_path, "rb") as f:
                return await f.read()
        except OSError as e:
            raise ResourceReadError(path, str(e)) from e

    async def put_resource(self, path: str, content: bytes, timestamp: int) -> None:
        """Atomically replace the file at path and record timestamp in the sidecar."""
        target_path = self._get_full_path(path)
        temp_path: str | None = None
        try:
            target_path.parent.mkdir(parents=True, exist_ok=True, mode=0o750)
            temp_fd, temp_path = tempfile.mkstemp(
                dir=target_path.parent,
                prefix=TEMP_PREFIX,
            )
            os.close(temp_fd)
            async with aiofiles.open(temp_path, "wb") as f:
                await f.write(content)
            os.chmod(temp_path, 0o640)
            await aiofiles.os.replace(temp_path, target_path)
            temp_path = None
            async with aiofiles.open(self._meta_path(target_path), "w") as f:
                await f.write(
                    json.dumps({"path": path, "timestamp": timestamp, "size": len(content)})
                )
        except OSError as e:
            raise ResourceWriteError(path, str(e)) from e
        finally:
            if temp_path is not None and Path(temp_path).exists():
                os.unlink(temp_path)

    async def get_resource_timestamp(self, path: str) -> int | None:
        """Return the timestamp written with the resource, or None if absent."""
        file_path = self._get_full_path(path)
        try:
            if not file_path.is_file():
                return None
            meta = await self._read_metadata(file_path)
        except (OSError, ValueError) as e:
            raise ResourceReadError(path, str(e)) from e
        timestamp = meta.get("timestamp")
        return int(timestamp) if timestamp is not None else None

    async def list_resources_recursively(self, prefix: str) -> list[str]:
        """Return resource paths under prefix (sidecars and temp files excluded)."""
        base = self._get_full_path(prefix)
        try:
            if not base.is_dir():
                return []
            paths = [
                "/" + file_path.relative_to(self.store_root).as_posix()
                for file_path in base.rglob("*")
                if file_path.is_file() and not is_reserved_name(file_path.name)
            ]
        except OSError as e:
            raise ResourceReadError(prefix, str(e)) from e
        return sorted(paths)

    def get_readable_resource_path(self, path: str) -> str:
        """Return the filesystem location for path."""
        return str(self.store_root / path.lstrip("/"))
