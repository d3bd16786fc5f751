"""Application layer: table ACL manager and its per-configuration registry."""
