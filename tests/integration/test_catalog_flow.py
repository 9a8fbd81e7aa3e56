"""
Integration tests for the catalog read/write flow across components.
"""

import asyncio

import httpx
import pytest

from shared.config import get_config
from shared.errors import RetryError, TransientError
from shared.metrics import MetricsCollector
from shared.retry import RetryingClient, RetryPolicy
from service_catalog.app.adapters import HttpDataSource, InMemoryDataSource
from service_catalog.app.caching import CacheAsideAccessor, InvalidationCoordinator, KeyRegistry, TTLCache
from service_catalog.app.domain import PageQuery, ProductCatalog, ProductCreate
from service_catalog.app.main import CatalogService


async def _no_sleep(delay: float):
    return None


def _build_catalog(source, metrics=None):
    cache = TTLCache("products", sweep_interval=None)
    registry = KeyRegistry("products")
    catalog = ProductCatalog(
        source,
        CacheAsideAccessor(cache, registry, absolute_ttl=300, sliding_ttl=120, metrics=metrics),
        InvalidationCoordinator(cache, registry, metrics=metrics),
        RetryingClient(RetryPolicy(max_attempts=3, base_delay=1.0), sleep=_no_sleep, metrics=metrics),
    )
    return catalog, cache, registry


class TestConcurrentInvalidation:
    """Concurrent writes racing cache population."""

    @pytest.mark.asyncio
    async def test_concurrent_creates_leave_registry_empty(self):
        """Test 100 concurrent create+invalidate cycles."""
        catalog, cache, registry = _build_catalog(InMemoryDataSource())
        for page in range(1, 5):
            await catalog.get_page(PageQuery(page_number=page, page_size=10))
        await catalog.get_by_id(1)
        cached_keys = registry.snapshot()
        assert len(cached_keys) == 5

        await asyncio.gather(*(
            catalog.create(ProductCreate(name=f"Bulk Item {n:03d}", price=9.99, stock=1, category_id=102))
            for n in range(100)
        ))

        assert registry.count() == 0
        for key in cached_keys:
            assert cache.get(key) == (None, False)
        assert (await catalog.get_page()).total_count == 136

    @pytest.mark.asyncio
    async def test_reads_racing_writes_converge(self):
        """Test that reads after the last write observe the final catalog."""
        source = InMemoryDataSource(latency=0.001)
        catalog, _, registry = _build_catalog(source)

        async def reader():
            for _ in range(5):
                await catalog.get_page()

        async def writer(n: int):
            await catalog.create(ProductCreate(name=f"Race Item {n:02d}", price=1.0, stock=1, category_id=101))

        await asyncio.gather(*(reader() for _ in range(10)), *(writer(n) for n in range(20)))
        catalog.invalidator.invalidate_all()

        assert registry.count() == 0
        assert (await catalog.get_page()).total_count == 56


class TestResilientReads:
    """Reads through a flaky data source."""

    @pytest.mark.asyncio
    async def test_flaky_source_recorded_in_metrics(self):
        metrics = MetricsCollector("catalog-integration")
        source = InMemoryDataSource()
        catalog, _, _ = _build_catalog(source, metrics=metrics)
        source.inject_failures(TransientError("reset"), count=2)

        await catalog.get_page()
        await catalog.get_page()

        assert metrics.get_sample("retry_attempts_total", client="data_source", outcome="transient") == 2
        assert metrics.get_sample("cache_misses_total", namespace="products") == 1
        assert metrics.get_sample("cache_hits_total", namespace="products") == 1

    @pytest.mark.asyncio
    async def test_persistent_outage(self):
        source = InMemoryDataSource()
        catalog, cache, _ = _build_catalog(source)
        source.inject_failures(TransientError("down"), count=10)

        with pytest.raises(RetryError) as exc_info:
            await catalog.get_page()

        assert exc_info.value.attempts == 3
        assert cache.count() == 0


class TestHttpProxyFlow:
    """A catalog service reading another catalog service over HTTP."""

    @pytest.fixture
    def upstream(self):
        config = get_config("catalog", 8020, base_backoff_delay=0.0)
        return CatalogService(config=config, data_source=InMemoryDataSource())

    @pytest.fixture
    def proxy_catalog(self, upstream):
        source = HttpDataSource("http://upstream", transport=httpx.ASGITransport(app=upstream.app))
        catalog, cache, registry = _build_catalog(source)
        return catalog, source

    @pytest.mark.asyncio
    async def test_page_and_item_over_http(self, proxy_catalog):
        catalog, source = proxy_catalog

        page = await catalog.get_page(PageQuery(search_term="camera", page_size=3))
        product = await catalog.get_by_id(page.items[0].id)
        await source.close()

        assert page.total_count == 4
        assert product.category.name == "Photography"

    @pytest.mark.asyncio
    async def test_writes_over_http(self, proxy_catalog, upstream):
        catalog, source = proxy_catalog

        created = await catalog.create(ProductCreate(name="Ring Light", price=39.99, stock=15, category_id=107))
        await catalog.delete(1)
        refreshed = await catalog.refresh_sample_data()
        await source.close()

        assert created.id == 37
        assert refreshed == 36
        assert upstream.registry.count() == 0

    @pytest.mark.asyncio
    async def test_not_found_over_http(self, proxy_catalog):
        catalog, source = proxy_catalog

        with pytest.raises(RetryError) as exc_info:
            await catalog.get_by_id(999)
        await source.close()

        assert exc_info.value.details["last_error_code"] == "NOT_FOUND"
