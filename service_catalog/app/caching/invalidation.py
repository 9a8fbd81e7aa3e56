"""
Bulk invalidation of a cache namespace after successful writes.
"""

from typing import Optional, TYPE_CHECKING

from shared.errors import CacheInternalError
from shared.logging import get_logger
from .key_registry import KeyRegistry
from .ttl_cache import TTLCache

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class InvalidationCoordinator:
    """Drops every cache entry tracked by a key registry.

    Only call ``invalidate_all`` after a mutation has succeeded. A failed
    write must leave still-valid reads in place.
    """

    def __init__(self, cache: TTLCache, registry: KeyRegistry, metrics: Optional["MetricsCollector"] = None):
        self.cache = cache
        self.registry = registry
        self.metrics = metrics
        self.logger = get_logger(f"catalog.invalidation.{registry.namespace}")

    def invalidate_all(self) -> int:
        """Remove all registered keys; returns the snapshot size."""
        snapshot = self.registry.snapshot()
        for key in snapshot:
            try:
                self.cache.remove(key)
            except CacheInternalError as exc:
                self._bypass(key, exc)
        self.registry.clear(snapshot)

        self.logger.info(
            "Invalidated cache entries",
            namespace=self.registry.namespace,
            count=len(snapshot)
        )
        if self.metrics is not None:
            self.metrics.increment_counter("cache_invalidations_total", namespace=self.registry.namespace)
            self.metrics.increment_counter(
                "cache_invalidated_keys_total",
                amount=len(snapshot),
                namespace=self.registry.namespace
            )
        return len(snapshot)

    def _bypass(self, key: str, exc: CacheInternalError):
        self.logger.error(
            "Cache error during invalidation, skipping key",
            operation="remove",
            key=key,
            code=exc.code,
            error=exc.message
        )
        if self.metrics is not None:
            self.metrics.increment_counter(
                "cache_bypass_total",
                namespace=self.registry.namespace,
                operation="remove"
            )
