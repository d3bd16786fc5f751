"""Dependencies for v1 endpoints (composition root).

The registry is created in the app lifespan (app.state.acl_registry);
each request resolves the manager for the process settings from it.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from tableacl.application.services import TableACLManager, TableACLManagerRegistry
from tableacl.core.config import get_settings


async def get_table_acl_manager(request: Request) -> TableACLManager:
    """Return the TableACLManager for the current settings."""
    registry: TableACLManagerRegistry | None = getattr(
        request.app.state, "acl_registry", None
    )
    if registry is None:
        raise HTTPException(status_code=503, detail="Table ACL registry not initialized")
    return await registry.get_instance(get_settings())
