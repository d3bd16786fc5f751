"""In-memory record cache with broadcast-on-write."""

from tableacl.infrastructure.cache.case_insensitive_cache import (
    CaseInsensitiveStringCache,
)

__all__ = ["CaseInsensitiveStringCache"]
