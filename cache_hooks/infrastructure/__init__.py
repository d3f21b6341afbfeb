"""Infrastructure layer: storage clients and the cache controller."""
