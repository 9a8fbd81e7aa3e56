"""
Cache-aside access for one cache namespace.
"""

import time
from typing import Awaitable, Callable, Generic, Optional, Tuple, TypeVar, TYPE_CHECKING
from urllib.parse import quote

from shared.deadline import Deadline, run_bounded
from shared.errors import CacheInternalError
from shared.logging import get_logger
from .key_registry import KeyRegistry
from .ttl_cache import TTLCache

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector

V = TypeVar("V")

# Sentinels for absent filters. "*" never survives percent-encoding, so no
# search term can produce the same key segment.
NO_SEARCH = "*"
ANY_CATEGORY = "*"

DEFAULT_ABSOLUTE_TTL = 300.0
DEFAULT_SLIDING_TTL = 120.0


def normalize_search(search_term: Optional[str]) -> str:
    """Trim and case-fold a free-text search term; None becomes empty."""
    if search_term is None:
        return ""
    return search_term.strip().casefold()


class CacheAsideAccessor(Generic[V]):
    """Check the cache, otherwise compute, populate and register the key.

    Concurrent misses for one key are not coalesced: each caller runs its own
    factory and the last writer wins.
    """

    def __init__(self,
                 cache: TTLCache,
                 registry: KeyRegistry,
                 *,
                 absolute_ttl: float = DEFAULT_ABSOLUTE_TTL,
                 sliding_ttl: float = DEFAULT_SLIDING_TTL,
                 metrics: Optional["MetricsCollector"] = None):
        self.cache = cache
        self.registry = registry
        self.namespace = registry.namespace
        self.absolute_ttl = absolute_ttl
        self.sliding_ttl = sliding_ttl
        self.metrics = metrics
        self.logger = get_logger(f"catalog.accessor.{self.namespace}")

    def build_key(self,
                  page_number: int,
                  page_size: int,
                  search_term: Optional[str] = None,
                  category_id: Optional[int] = None) -> str:
        """Deterministic key for a page query."""
        search = normalize_search(search_term)
        search_part = quote(search, safe="") if search else NO_SEARCH
        category_part = str(category_id) if category_id is not None else ANY_CATEGORY
        return (
            f"{self.namespace}:page:{int(page_number)}:size:{int(page_size)}"
            f":search:{search_part}:cat:{category_part}"
        )

    def build_item_key(self, item_id: int) -> str:
        """Deterministic key for a single item lookup."""
        return f"{self.namespace}:item:{int(item_id)}"

    async def get_or_compute(self,
                             key: str,
                             factory: Callable[[], Awaitable[V]],
                             deadline: Optional[Deadline] = None) -> V:
        """Return the cached value for ``key`` or compute and cache it.

        Factory errors propagate unchanged and leave the cache untouched.
        """
        value, found = self._safe_get(key)
        if found:
            self.logger.debug("Cache hit", key=key)
            self._count("cache_hits_total")
            return value

        self.logger.info("Cache miss - executing factory", key=key)
        self._count("cache_misses_total")

        started = time.perf_counter()
        value = await run_bounded(factory(), deadline)
        if self.metrics is not None:
            self.metrics.observe_histogram(
                "cache_fill_duration_seconds",
                time.perf_counter() - started,
                namespace=self.namespace
            )

        self._safe_populate(key, value)
        return value

    def _safe_get(self, key: str) -> Tuple[Optional[V], bool]:
        try:
            return self.cache.get(key)
        except CacheInternalError as exc:
            self._bypass("get", key, exc)
            return None, False

    def _safe_populate(self, key: str, value: V):
        # Register before the entry becomes visible so invalidation can find it,
        # and again after, in case an invalidation cleared the key in between.
        try:
            self.registry.add(key)
            self.cache.set(key, value, self.absolute_ttl, self.sliding_ttl)
            self.registry.add(key)
        except CacheInternalError as exc:
            self._bypass("set", key, exc)
            return
        self.logger.debug("Cached value", key=key, registered_keys=self.registry.count())

    def _bypass(self, operation: str, key: str, exc: CacheInternalError):
        self.logger.error(
            "Cache error, bypassing cache",
            operation=operation,
            key=key,
            code=exc.code,
            error=exc.message
        )
        if self.metrics is not None:
            self.metrics.increment_counter("cache_bypass_total", namespace=self.namespace, operation=operation)

    def _count(self, metric_name: str):
        if self.metrics is not None:
            self.metrics.increment_counter(metric_name, namespace=self.namespace)
