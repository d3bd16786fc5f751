"""Core constants: resource namespace, broadcast entity names and literals.

Single source of truth for path and channel structure (DRY).
"""

# Default resource store namespace for table ACL records (<namespace>/<project>).
TABLE_ACL_NAMESPACE = "/table_acl"

# Broadcast entity (topic) shared by every TableACLManager across processes.
TABLE_ACL_ENTITY = "table_acl"

# Entity name used for clear-all announcements.
BROADCAST_ENTITY_ALL = "all"

# Delimiter for resource paths and broadcast channels
PATH_SEP = "/"
CHANNEL_SEP = ":"

# Reserved file names in the local store: timestamp sidecars and in-flight writes.
# Never valid as a resource name.
META_SUFFIX = ".meta.json"
TEMP_PREFIX = ".tmp_"
