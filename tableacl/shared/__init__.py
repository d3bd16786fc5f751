"""Shared utilities (datetime helpers, logging setup)."""
