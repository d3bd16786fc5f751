"""Application lifespan: startup and shutdown.

Single place for startup/shutdown wiring: logging, the manager registry
(store and broadcaster are resolved by it) and the initial load.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from tableacl.application.services import TableACLManagerRegistry
from tableacl.core.config import get_settings
from tableacl.shared.telemetry import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup builds the registry and warms the manager for the process
    settings so load failures surface before serving. A registry already
    on app.state (tests) is reused. Shutdown closes managers and stops
    broadcasters.
    """
    setup_logging()
    settings = get_settings()

    # ---- Startup ----
    registry = getattr(app.state, "acl_registry", None)
    if registry is None:
        registry = TableACLManagerRegistry()
        app.state.acl_registry = registry
    await registry.get_instance(settings)
    logger.info("Table ACL manager ready for deployment %s", settings.deployment_id)

    yield

    # ---- Shutdown ----
    await registry.shutdown()
    app.state.acl_registry = None
    logger.info("Table ACL registry shut down")
