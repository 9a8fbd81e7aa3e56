"""
Key registry for bulk invalidation of one cache namespace.
"""

import threading
from typing import AbstractSet, FrozenSet, Set

from shared.logging import get_logger


class KeyRegistry:
    """Concurrent set of the cache keys that belong to a namespace.

    Keys are only ever removed in bulk, and only those captured by an earlier
    ``snapshot()``. A key registered while an invalidation is in progress is
    therefore kept.
    """

    def __init__(self, namespace: str):
        self.namespace = namespace
        self.logger = get_logger(f"catalog.registry.{namespace}")
        self._keys: Set[str] = set()
        self._lock = threading.Lock()

    def add(self, key: str):
        with self._lock:
            self._keys.add(key)

    def snapshot(self) -> FrozenSet[str]:
        """Point-in-time copy, safe to iterate without holding the lock."""
        with self._lock:
            return frozenset(self._keys)

    def clear(self, snapshot: AbstractSet[str]) -> int:
        """Remove exactly the keys in ``snapshot``; returns how many were present."""
        with self._lock:
            before = len(self._keys)
            self._keys.difference_update(snapshot)
            removed = before - len(self._keys)
        self.logger.debug("Cleared registry keys", namespace=self.namespace, removed=removed)
        return removed

    def count(self) -> int:
        with self._lock:
            return len(self._keys)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._keys

    def __len__(self) -> int:
        return self.count()
