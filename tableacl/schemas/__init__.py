"""API request/response schemas."""

from tableacl.schemas.health import HealthResponse
from tableacl.schemas.table_acl import TableACLResponse, UserBlackListResponse

__all__ = ["HealthResponse", "TableACLResponse", "UserBlackListResponse"]
