"""Table ACL API schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from tableacl.domain.entities import TableACL


class TableACLResponse(BaseModel):
    """Effective table blacklist of a project."""

    project: str
    last_modified: int = Field(..., description="Write timestamp (epoch ms); 0 when never written")
    user_table_black_list: dict[str, list[str]]

    @classmethod
    def from_entity(cls, project: str, table_acl: TableACL) -> TableACLResponse:
        """Build response from domain record (tables sorted)."""
        return cls(
            project=project,
            last_modified=table_acl.last_modified,
            user_table_black_list={
                user: sorted(tables)
                for user, tables in sorted(table_acl.user_table_black_list.items())
            },
        )


class UserBlackListResponse(BaseModel):
    """Tables denied to one user in a project."""

    project: str
    username: str
    tables: list[str]
