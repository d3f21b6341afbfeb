"""Application interfaces (ports): storage capability protocol.

Defines the contract infrastructure clients implement (DIP).
No runtime imports from cache_hooks.infrastructure.
"""

from cache_hooks.application.interfaces.storage import IStorageClient, MaybeAwaitable

__all__ = ["IStorageClient", "MaybeAwaitable"]
