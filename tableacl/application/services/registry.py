"""Registry of TableACLManager instances, one per configuration identity.

Pass one registry to whatever needs managers (app.state in the HTTP app)
instead of keeping a module-level map. Lookups are double-checked under a
threading.Lock and construction is single-flight per identity, so callers
racing on first access from any thread or event loop share one manager.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future

from tableacl.application.exceptions import ManagerInitializationError
from tableacl.application.services.table_acl_manager import TableACLManager
from tableacl.core.config import Settings
from tableacl.domain.exceptions import TableACLException
from tableacl.infrastructure.messaging import BroadcasterFactory, BroadcasterProtocol
from tableacl.infrastructure.persistence import (
    ResourceStoreFactory,
    ResourceStoreProtocol,
)

logger = logging.getLogger(__name__)

StoreResolver = Callable[[Settings], ResourceStoreProtocol]
BroadcasterResolver = Callable[[Settings], BroadcasterProtocol]


class TableACLManagerRegistry:
    """Maps Settings -> TableACLManager.

    The store and broadcaster for a configuration are resolved once and
    reused by every manager later built for it, so a manager rebuilt after
    clear_cache() sees the same store and bus as its predecessor.
    """

    def __init__(
        self,
        store_resolver: StoreResolver | None = None,
        broadcaster_resolver: BroadcasterResolver | None = None,
    ) -> None:
        """Initialize registry.

        Args:
            store_resolver: Returns the resource store for a configuration;
                defaults to ResourceStoreFactory.create_resource_store.
            broadcaster_resolver: Returns the broadcaster for a configuration;
                defaults to BroadcasterFactory.create_broadcaster.
        """
        self._store_resolver = store_resolver or ResourceStoreFactory.create_resource_store
        self._broadcaster_resolver = (
            broadcaster_resolver or BroadcasterFactory.create_broadcaster
        )
        self._instances: dict[Settings, TableACLManager] = {}
        # Settings ==> construction in flight; other callers wait on it
        self._pending: dict[Settings, Future[TableACLManager]] = {}
        self._stores: dict[Settings, ResourceStoreProtocol] = {}
        self._broadcasters: dict[Settings, BroadcasterProtocol] = {}
        self._lock = threading.Lock()

    async def get_instance(self, config: Settings) -> TableACLManager:
        """Return the manager for config, building and loading it on first access.

        The first caller for an identity builds the manager; concurrent
        callers, on this or any other event loop, await that construction.

        Raises:
            ManagerInitializationError: The store could not be read or holds
                malformed data. Nothing is cached; the next call retries.
        """
        manager = self._instances.get(config)
        if manager is not None:
            return manager

        with self._lock:
            manager = self._instances.get(config)
            if manager is not None:
                return manager
            pending = self._pending.get(config)
            building = pending is None
            if building:
                pending = Future()
                self._pending[config] = pending

        if not building:
            return await asyncio.wrap_future(pending)

        try:
            manager = await self._build(config)
        except BaseException as e:
            with self._lock:
                del self._pending[config]
            if isinstance(e, ManagerInitializationError):
                pending.set_exception(e)
            else:
                pending.set_exception(
                    ManagerInitializationError(config.deployment_id, repr(e))
                )
            raise

        with self._lock:
            del self._pending[config]
            self._instances[config] = manager
            alive = len(self._instances)
        pending.set_result(manager)
        if alive > 1:
            logger.warning("More than one TableACLManager singleton exists")
        return manager

    async def _build(self, config: Settings) -> TableACLManager:
        try:
            store = self._get_store(config)
            broadcaster = await self._get_broadcaster(config)
            return await TableACLManager.create(config, store, broadcaster, registry=self)
        except (TableACLException, OSError, ValueError) as e:
            logger.exception(
                "Failed to init TableACLManager for deployment %s",
                config.deployment_id,
            )
            raise ManagerInitializationError(config.deployment_id, str(e)) from e

    def _get_store(self, config: Settings) -> ResourceStoreProtocol:
        with self._lock:
            store = self._stores.get(config)
            if store is None:
                store = self._store_resolver(config)
                self._stores[config] = store
            return store

    async def _get_broadcaster(self, config: Settings) -> BroadcasterProtocol:
        with self._lock:
            broadcaster = self._broadcasters.get(config)
            created = broadcaster is None
            if created:
                broadcaster = self._broadcaster_resolver(config)
                self._broadcasters[config] = broadcaster
        if created:
            await broadcaster.start()
        return broadcaster

    def clear_cache(self, config: Settings | None = None) -> None:
        """Drop one manager (config given) or all of them.

        Dropped managers unregister their listener; the next get_instance()
        builds and loads a fresh one.
        """
        with self._lock:
            if config is None:
                managers = list(self._instances.values())
                self._instances.clear()
            else:
                manager = self._instances.pop(config, None)
                managers = [manager] if manager is not None else []
        for manager in managers:
            manager.close()

    async def shutdown(self) -> None:
        """Close every manager and stop every broadcaster started by this registry."""
        self.clear_cache()
        with self._lock:
            broadcasters = list(self._broadcasters.values())
            self._broadcasters.clear()
            self._stores.clear()
        for broadcaster in broadcasters:
            await broadcaster.stop()

    def __contains__(self, config: object) -> bool:
        return config in self._instances

    def __len__(self) -> int:
        return len(self._instances)
