"""Resource store: local filesystem and in-memory backends.

Factory creates the backend from tableacl.core.config. Implementations
implement ResourceStoreProtocol (get_resource, put_resource,
get_resource_timestamp, list_resources_recursively, get_readable_resource_path).
"""

from tableacl.infrastructure.persistence.factory import ResourceStoreFactory
from tableacl.infrastructure.persistence.protocol import ResourceStoreProtocol
from tableacl.infrastructure.persistence.serializer import JsonSerializer

__all__ = [
    "JsonSerializer",
    "ResourceStoreFactory",
    "ResourceStoreProtocol",
]
