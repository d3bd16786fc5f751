"""Application exceptions raised while wiring managers."""

from tableacl.domain.exceptions import TableACLException


class ManagerInitializationError(TableACLException):
    """A manager could not be constructed (store unreachable or data unreadable)."""

    def __init__(self, deployment_id: str, reason: str) -> None:
        super().__init__(
            f"Failed to init TableACLManager for deployment {deployment_id}",
            "MANAGER_INITIALIZATION_ERROR",
            {"deployment_id": deployment_id, "reason": reason},
        )
