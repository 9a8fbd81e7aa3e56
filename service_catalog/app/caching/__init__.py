"""
Catalog caching package.

Cache-aside primitives for one namespace: a dual-expiration TTL cache, the
key registry that makes bulk invalidation possible, the accessor that ties
them to a data source, and the coordinator that invalidates after writes.
Instances are created by the owning service and injected; nothing here is a
module-level singleton.
"""

from .ttl_cache import CacheEntry, TTLCache
from .key_registry import KeyRegistry
from .accessor import CacheAsideAccessor, normalize_search
from .invalidation import InvalidationCoordinator

__all__ = [
    "CacheEntry",
    "TTLCache",
    "KeyRegistry",
    "CacheAsideAccessor",
    "normalize_search",
    "InvalidationCoordinator",
]
