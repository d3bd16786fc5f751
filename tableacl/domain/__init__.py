"""Domain layer: table ACL entity and domain exceptions.

Pure domain models; no persistence or broadcast concerns.
"""
