"""Application services."""

from tableacl.application.services.registry import TableACLManagerRegistry
from tableacl.application.services.table_acl_manager import (
    TableACLManager,
    TableACLSyncListener,
)

__all__ = [
    "TableACLManager",
    "TableACLManagerRegistry",
    "TableACLSyncListener",
]
