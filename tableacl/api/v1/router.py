"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. All routes
use dependencies from tableacl.api.v1.dependencies (no manual manager construction).
"""

from fastapi import APIRouter

from tableacl.api.v1.endpoints import health, table_acl

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(table_acl.router, prefix="/projects", tags=["table-acl"])
