"""Application layer: storage port, hooks, and the cache-aside use case."""
