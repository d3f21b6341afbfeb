"""Cache-aside hooks: object (one-to-one) and collection (one-to-many) variants."""

from cache_hooks.application.hooks.base import Hook, bundle_cached, check_sub_ids
from cache_hooks.application.hooks.collection import (
    MultipleCollection,
    SingleCollection,
)
from cache_hooks.application.hooks.object import MultipleObject, SingleObject

__all__ = [
    "Hook",
    "MultipleCollection",
    "MultipleObject",
    "SingleCollection",
    "SingleObject",
    "bundle_cached",
    "check_sub_ids",
]
