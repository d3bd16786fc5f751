"""Infrastructure exceptions for resource store and broadcast operations.

Store errors extend TableACLException so presentation can map them
to HTTP responses consistently.
"""

from tableacl.domain.exceptions import TableACLException


class ResourceStoreException(TableACLException):
    """Base exception for resource store operations."""


class ResourceReadError(ResourceStoreException):
    """Reading or listing resources failed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            f"Failed to read resource: {path}",
            "RESOURCE_READ_ERROR",
            {"path": path, "reason": reason},
        )


class ResourceWriteError(ResourceStoreException):
    """Writing a resource failed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            f"Failed to write resource: {path}",
            "RESOURCE_WRITE_ERROR",
            {"path": path, "reason": reason},
        )


class ResourcePermissionError(ResourceStoreException):
    """Path escapes the store root (traversal) or is otherwise not allowed."""

    def __init__(self, path: str, operation: str) -> None:
        super().__init__(
            f"Permission denied for {operation} on {path}",
            "RESOURCE_PERMISSION_ERROR",
            {"path": path, "operation": operation},
        )


class RecordDeserializationError(TableACLException):
    """Stored payload could not be decoded into a record."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            f"Malformed record at {path}",
            "RECORD_DESERIALIZATION_ERROR",
            {"path": path, "reason": reason},
        )
