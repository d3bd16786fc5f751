"""Table ACL API: read effective blacklist, add and delete entries (project-scoped)."""

from typing import Annotated

from fastapi import APIRouter, Depends

from tableacl.api.v1.dependencies import get_table_acl_manager
from tableacl.application.services import TableACLManager
from tableacl.schemas.table_acl import TableACLResponse, UserBlackListResponse

router = APIRouter()

Manager = Annotated[TableACLManager, Depends(get_table_acl_manager)]


@router.get("/{project}/table-acl", response_model=TableACLResponse)
async def get_table_acl(project: str, manager: Manager):
    """Return the cached blacklist for project (empty when none)."""
    return TableACLResponse.from_entity(project, manager.get_table_acl_by_cache(project))


@router.get(
    "/{project}/table-acl/users/{username}",
    response_model=UserBlackListResponse,
)
async def get_user_black_list(project: str, username: str, manager: Manager):
    """Return the tables denied to username in project."""
    tables = manager.get_table_acl_by_cache(project).get_table_black_list(username)
    return UserBlackListResponse(project=project, username=username, tables=sorted(tables))


@router.post(
    "/{project}/table-acl/users/{username}/tables/{table}",
    response_model=TableACLResponse,
    status_code=201,
)
async def add_table_acl(project: str, username: str, table: str, manager: Manager):
    """Deny table to username."""
    table_acl = await manager.add_table_acl(project, username, table)
    return TableACLResponse.from_entity(project, table_acl)


@router.delete(
    "/{project}/table-acl/users/{username}/tables/{table}",
    response_model=TableACLResponse,
)
async def delete_table_acl(project: str, username: str, table: str, manager: Manager):
    """Allow table to username again."""
    table_acl = await manager.delete_table_acl(project, username, table)
    return TableACLResponse.from_entity(project, table_acl)


@router.delete("/{project}/table-acl/users/{username}", response_model=TableACLResponse)
async def delete_user_table_acl(project: str, username: str, manager: Manager):
    """Remove every blacklist entry of username."""
    table_acl = await manager.delete_table_acl(project, username)
    return TableACLResponse.from_entity(project, table_acl)


@router.delete("/{project}/table-acl/tables/{table}", response_model=TableACLResponse)
async def delete_table_acl_by_table(project: str, table: str, manager: Manager):
    """Remove table from every user's blacklist."""
    table_acl = await manager.delete_table_acl_by_table(project, table)
    return TableACLResponse.from_entity(project, table_acl)
