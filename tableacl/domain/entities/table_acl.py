"""Table ACL domain entity.

Per-project record of which users are denied which tables. Records are
immutable: every mutation returns a new TableACL, so a record read from the
cache can be shared by concurrent readers without copying.
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class TableACL(BaseModel):
    """Blacklist of tables per user within one project.

    Usernames and table identifiers are case-sensitive. A user whose
    blacklist becomes empty is dropped from the mapping, so an empty
    record and a missing record are interchangeable.
    """

    model_config = ConfigDict(frozen=True)

    uuid: str = Field(default_factory=lambda: str(uuid4()))
    last_modified: int = 0
    user_table_black_list: dict[str, frozenset[str]] = Field(default_factory=dict)

    @field_validator("user_table_black_list", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("user_table_black_list")
    @classmethod
    def _drop_empty_users(
        cls, value: dict[str, frozenset[str]]
    ) -> dict[str, frozenset[str]]:
        return {user: tables for user, tables in value.items() if tables}

    @field_serializer("user_table_black_list")
    def _serialize_black_list(
        self, value: dict[str, frozenset[str]]
    ) -> dict[str, list[str]]:
        # Sorted so the same record always encodes to the same bytes.
        return {user: sorted(value[user]) for user in sorted(value)}

    def is_empty(self) -> bool:
        """Return True when no user has any blacklisted table."""
        return not self.user_table_black_list

    def get_table_black_list(self, username: str) -> frozenset[str]:
        """Return the tables denied to username (empty when none)."""
        return self.user_table_black_list.get(username, frozenset())

    def get_no_access_list(self, table: str) -> set[str]:
        """Return the users denied the given table."""
        return {
            user
            for user, tables in self.user_table_black_list.items()
            if table in tables
        }

    def add(self, username: str, table: str) -> TableACL:
        """Return a copy with table added to username's blacklist. No-op if present."""
        black_list = dict(self.user_table_black_list)
        black_list[username] = self.get_table_black_list(username) | {table}
        return self._with_black_list(black_list)

    def delete(self, username: str, table: str | None = None) -> TableACL:
        """Return a copy without table for username, or without username entirely.

        Args:
            username: User whose entry is changed.
            table: Table to remove; when None the whole user entry is removed.

        Returns:
            New TableACL. Deleting something absent yields an equal blacklist.
        """
        black_list = dict(self.user_table_black_list)
        if table is None:
            black_list.pop(username, None)
        elif username in black_list:
            black_list[username] = black_list[username] - {table}
        return self._with_black_list(black_list)

    def delete_by_table(self, table: str) -> TableACL:
        """Return a copy with table removed from every user's blacklist."""
        return self._with_black_list(
            {
                user: tables - {table}
                for user, tables in self.user_table_black_list.items()
            }
        )

    def with_last_modified(self, last_modified: int) -> TableACL:
        """Return a copy stamped with the given write timestamp (epoch ms)."""
        return self.model_copy(update={"last_modified": last_modified})

    def _with_black_list(self, black_list: dict[str, frozenset[str]]) -> TableACL:
        return self.model_copy(
            update={
                "user_table_black_list": {
                    user: frozenset(tables)
                    for user, tables in black_list.items()
                    if tables
                }
            }
        )
