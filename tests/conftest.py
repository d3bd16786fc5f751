"""Pytest configuration and fixtures for tableacl.

Managers are wired to an InMemoryResourceStore and a LocalBroadcaster so
several managers in one test behave like peers in separate processes.
"""

from __future__ import annotations

import asyncio

import pytest

from tableacl.application.services import TableACLManager, TableACLManagerRegistry
from tableacl.core.config import Settings
from tableacl.infrastructure.messaging import LocalBroadcaster
from tableacl.infrastructure.persistence.memory_store import InMemoryResourceStore


def make_settings(**overrides) -> Settings:
    """Settings isolated from .env and suitable as a registry key."""
    values = {"store_backend": "memory", "deployment_id": "test"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class SlowResourceStore(InMemoryResourceStore):
    """In-memory store that yields to the event loop on every call (exposes races)."""

    def __init__(self, delay: float = 0.01) -> None:
        super().__init__()
        self.delay = delay
        self.list_calls = 0

    async def get_resource(self, path: str) -> bytes | None:
        await asyncio.sleep(self.delay)
        return await super().get_resource(path)

    async def put_resource(self, path: str, content: bytes, timestamp: int) -> None:
        await asyncio.sleep(self.delay)
        await super().put_resource(path, content, timestamp)

    async def list_resources_recursively(self, prefix: str) -> list[str]:
        self.list_calls += 1
        await asyncio.sleep(self.delay)
        return await super().list_resources_recursively(prefix)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def store() -> InMemoryResourceStore:
    return InMemoryResourceStore()


@pytest.fixture
def broadcaster() -> LocalBroadcaster:
    return LocalBroadcaster()


@pytest.fixture
def registry(store, broadcaster) -> TableACLManagerRegistry:
    """Registry whose managers all share one store and one broadcaster."""
    return TableACLManagerRegistry(
        store_resolver=lambda _settings: store,
        broadcaster_resolver=lambda _settings: broadcaster,
    )


@pytest.fixture
async def manager(settings, store, broadcaster) -> TableACLManager:
    """Standalone manager (no registry)."""
    m = await TableACLManager.create(settings, store, broadcaster)
    yield m
    m.close()
