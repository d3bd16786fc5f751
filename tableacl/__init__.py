"""tableacl: per-project table blacklists with a write-through, broadcast-synchronised cache."""

__version__ = "1.0.0"
