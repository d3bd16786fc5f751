"""Infrastructure: resource stores, broadcasters and the in-memory record cache."""
