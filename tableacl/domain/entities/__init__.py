"""Domain entities."""

from tableacl.domain.entities.table_acl import TableACL

__all__ = ["TableACL"]
