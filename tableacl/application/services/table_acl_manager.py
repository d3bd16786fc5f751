"""Table ACL manager: write-through cache of per-project table blacklists.

Reads are served from memory. Every mutation re-reads the record from the
resource store, derives a new record, persists it and only then updates the
cache and announces the change, all under a per-project lock. Peers
reconcile one key at a time through TableACLSyncListener.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from tableacl.core.constants import (
    META_SUFFIX,
    PATH_SEP,
    TABLE_ACL_ENTITY,
    TEMP_PREFIX,
)
from tableacl.domain.entities import TableACL
from tableacl.domain.exceptions import ValidationException
from tableacl.infrastructure.cache import CaseInsensitiveStringCache
from tableacl.infrastructure.cache.case_insensitive_cache import normalize_key
from tableacl.infrastructure.exceptions import (
    RecordDeserializationError,
    ResourceStoreException,
)
from tableacl.infrastructure.messaging.protocol import (
    BroadcasterProtocol,
    BroadcastEvent,
    BroadcastListener,
)
from tableacl.infrastructure.persistence import JsonSerializer, ResourceStoreProtocol
from tableacl.shared.utils.datetime import utc_now_ms

if TYPE_CHECKING:
    from tableacl.application.services.registry import TableACLManagerRegistry
    from tableacl.core.config import Settings

logger = logging.getLogger(__name__)

TABLE_ACL_SERIALIZER = JsonSerializer(TableACL)


class _ProjectLock:
    """A project's mutation lock and the number of mutations holding or awaiting it."""

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


class TableACLSyncListener(BroadcastListener):
    """Reconciles its manager's cache from table_acl broadcasts."""

    def __init__(self, manager: TableACLManager) -> None:
        self.manager = manager

    async def on_clear_all(self, broadcaster: BroadcasterProtocol) -> None:
        await self.manager.handle_clear_all()

    async def on_entity_change(
        self,
        broadcaster: BroadcasterProtocol,
        entity: str,
        event: BroadcastEvent,
        cache_key: str,
    ) -> None:
        await self.manager.reconcile_table_acl(cache_key)


class TableACLManager:
    """Owns the table ACL cache for one configuration.

    Build with TableACLManager.create() (loads every record and starts
    listening); obtain shared instances through TableACLManagerRegistry.
    """

    def __init__(
        self,
        config: Settings,
        store: ResourceStoreProtocol,
        broadcaster: BroadcasterProtocol,
        registry: TableACLManagerRegistry | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.broadcaster = broadcaster
        self._registry = registry
        self._namespace = config.acl_namespace.rstrip(PATH_SEP)
        # project ==> TableACL
        self._table_acl_map: CaseInsensitiveStringCache[TableACL] = (
            CaseInsensitiveStringCache(broadcaster, TABLE_ACL_ENTITY)
        )
        # normalised project ==> lock held or awaited by a mutation
        self._project_locks: dict[str, _ProjectLock] = {}
        self._listener = TableACLSyncListener(self)
        self._listening = False

    @classmethod
    async def create(
        cls,
        config: Settings,
        store: ResourceStoreProtocol,
        broadcaster: BroadcasterProtocol,
        registry: TableACLManagerRegistry | None = None,
    ) -> TableACLManager:
        """Construct, register the sync listener and load all records.

        The listener is registered before loading so no change announced
        during the load is missed. If loading fails the listener is removed
        again and the error propagates.
        """
        logger.info(
            "Initializing TableACLManager for deployment %s", config.deployment_id
        )
        manager = cls(config, store, broadcaster, registry)
        broadcaster.register_listener(manager._listener, TABLE_ACL_ENTITY)
        manager._listening = True
        try:
            await manager.load_all_table_acl()
        except BaseException:
            manager.close()
            raise
        return manager

    def close(self) -> None:
        """Stop reacting to broadcasts. Idempotent."""
        if self._listening:
            self.broadcaster.unregister_listener(self._listener)
            self._listening = False
            logger.info(
                "TableACLManager for deployment %s closed", self.config.deployment_id
            )

    @property
    def is_listening(self) -> bool:
        return self._listening

    # ------------------------------------------------------------------
    # Reads

    def get_table_acl_by_cache(self, project: str) -> TableACL:
        """Return the cached record for project, or an empty record. Never hits the store."""
        table_acl = self._table_acl_map.get(project)
        if table_acl is None:
            return TableACL()
        return table_acl

    def cached_projects(self) -> list[str]:
        """Return the (lower-cased) projects currently cached."""
        return self._table_acl_map.keys()

    # ------------------------------------------------------------------
    # Loading and reconciliation

    def _resource_path(self, project: str) -> str:
        return f"{self._namespace}{PATH_SEP}{normalize_key(project)}"

    async def _read_table_acl(self, path: str) -> TableACL:
        content = await self.store.get_resource(path)
        if content is None:
            return TableACL()
        return TABLE_ACL_SERIALIZER.deserialize(content, path)

    async def _get_table_acl(self, project: str) -> TableACL:
        """Read project's record straight from the store (empty record when absent)."""
        return await self._read_table_acl(self._resource_path(project))

    async def load_all_table_acl(self) -> None:
        """Read every record under the namespace into a fresh cache, then swap it in.

        The current cache is only replaced once every record has been read,
        so a failed load leaves readers on the previous entries. Records are
        read from the listed paths as-is; when two paths differ only in case
        the lower-case one, sorted last, is the one kept.
        """
        paths = await self.store.list_resources_recursively(self._namespace)
        prefix_len = len(self._namespace) + len(PATH_SEP)
        loaded: CaseInsensitiveStringCache[TableACL] = CaseInsensitiveStringCache(
            self.broadcaster, TABLE_ACL_ENTITY
        )
        for path in paths:
            loaded.put_local(path[prefix_len:], await self._read_table_acl(path))
        self._table_acl_map = loaded
        logger.info(
            "Loaded %d table ACL records from %s",
            len(paths),
            self.store.get_readable_resource_path(self._namespace),
        )

    async def reload_table_acl(self, project: str) -> TableACL:
        """Re-read one project from the store into the local cache."""
        table_acl = await self._get_table_acl(project)
        self._table_acl_map.put_local(project, table_acl)
        return table_acl

    async def reconcile_table_acl(self, project: str) -> None:
        """Apply a remote change for project; failures leave the entry stale and are logged."""
        try:
            await self.reload_table_acl(project)
        except (ResourceStoreException, RecordDeserializationError):
            logger.exception(
                "Failed to reconcile table ACL for project %s; cached entry left stale",
                project,
            )
            return
        logger.debug("Reconciled table ACL for project %s", project)

    async def handle_clear_all(self) -> None:
        """Drop every registered manager, or reload everything when standalone."""
        if self._registry is not None:
            logger.info("Clear-all received, dropping all TableACLManager instances")
            self._registry.clear_cache()
            return
        logger.info("Clear-all received, reloading all table ACL records")
        try:
            await self.load_all_table_acl()
        except (ResourceStoreException, RecordDeserializationError):
            logger.exception(
                "Failed to reload table ACL records after clear-all; cached entries left stale"
            )

    # ------------------------------------------------------------------
    # Mutations

    async def add_table_acl(self, project: str, username: str, table: str) -> TableACL:
        """Deny table to username in project."""
        _require(username, "username")
        _require(table, "table")
        return await self._update(project, lambda acl: acl.add(username, table))

    async def delete_table_acl(
        self, project: str, username: str, table: str | None = None
    ) -> TableACL:
        """Remove table from username's blacklist, or the whole user when table is None."""
        _require(username, "username")
        if table is not None:
            _require(table, "table")
        return await self._update(project, lambda acl: acl.delete(username, table))

    async def delete_table_acl_by_table(self, project: str, table: str) -> TableACL:
        """Remove table from every user's blacklist in project."""
        _require(table, "table")
        return await self._update(project, lambda acl: acl.delete_by_table(table))

    @asynccontextmanager
    async def _project_lock(self, project: str) -> AsyncIterator[None]:
        """Serialise mutations of one project.

        The lock entry is dropped once no mutation holds or awaits it.
        """
        key = normalize_key(project)
        entry = self._project_locks.get(key)
        if entry is None:
            entry = self._project_locks[key] = _ProjectLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._project_locks[key]

    async def _update(
        self, project: str, change: Callable[[TableACL], TableACL]
    ) -> TableACL:
        """Read from store, derive, persist, then cache and announce (one critical section)."""
        _require_project(project)
        path = self._resource_path(project)
        async with self._project_lock(project):
            timestamp = utc_now_ms()
            table_acl = change(await self._get_table_acl(project)).with_last_modified(
                timestamp
            )
            await self.store.put_resource(
                path, TABLE_ACL_SERIALIZER.serialize(table_acl), timestamp
            )
            await self._table_acl_map.put(project, table_acl)
        return table_acl


def _require(value: str, field: str) -> None:
    if not value or not value.strip():
        raise ValidationException(f"{field} must be a non-empty string", field=field)


def _require_project(project: str) -> None:
    _require(project, "project")
    name = normalize_key(project)
    if (
        PATH_SEP in name
        or name in (".", "..")
        or name.startswith(TEMP_PREFIX)
        or name.endswith(META_SUFFIX)
    ):
        raise ValidationException(
            f"project must be a single, non-reserved path segment, got: {project!r}",
            field="project",
        )
