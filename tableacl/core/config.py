"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Settings are frozen: a Settings instance is hashable
and doubles as the configuration identity that keys the manager registry.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tableacl.core.constants import TABLE_ACL_NAMESPACE

_STORE_BACKENDS = ("local", "memory")
_BROADCAST_BACKENDS = ("local", "redis")


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    Two Settings objects with equal field values are the same logical
    configuration; deployment_id separates tenants that otherwise share
    every other value.
    """

    # App
    app_name: str = "tableacl"
    app_version: str = "1.0.0"
    debug: bool = False
    deployment_id: str = "default"

    # Resource store: "local" (filesystem under store_root) or "memory" (process-local)
    store_backend: str = "local"
    store_root: str = "./metadata"
    acl_namespace: str = TABLE_ACL_NAMESPACE

    # Broadcast: "local" (in-process listeners only) or "redis" (pub/sub across processes)
    broadcast_backend: str = "local"
    broadcast_channel_prefix: str = "tableacl:broadcast"

    # Redis
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None
    redis_socket_timeout: int = 5

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
    )

    @model_validator(mode="after")
    def validate_backends(self) -> "Settings":
        """Validate backend names and the ACL namespace."""
        if self.store_backend not in _STORE_BACKENDS:
            raise ValueError(
                f"Invalid store_backend '{self.store_backend}'. "
                f"Must be one of: {', '.join(repr(b) for b in _STORE_BACKENDS)}"
            )
        if self.broadcast_backend not in _BROADCAST_BACKENDS:
            raise ValueError(
                f"Invalid broadcast_backend '{self.broadcast_backend}'. "
                f"Must be one of: {', '.join(repr(b) for b in _BROADCAST_BACKENDS)}"
            )
        if not self.acl_namespace.startswith("/") or self.acl_namespace == "/":
            raise ValueError(
                f"acl_namespace must be an absolute path below '/', got: {self.acl_namespace!r}"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
