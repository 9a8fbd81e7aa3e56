"""
Catalog service for the Catalog Access Layer.
"""

from typing import Any, Dict, List, Optional

from fastapi import Query, Response

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.retry import RetryingClient, RetryPolicy
from .adapters import DataSource, build_data_source
from .caching import CacheAsideAccessor, InvalidationCoordinator, KeyRegistry, TTLCache
from .domain import (
    Category,
    PageQuery,
    PaginatedResult,
    Product,
    ProductCatalog,
    ProductCreate,
    ProductUpdate,
)
from .domain.models import DEFAULT_PAGE_SIZE

NAMESPACE = "products"


def build_retry_policy(config: ServiceConfig) -> RetryPolicy:
    """Retry policy from service config; ``max_retries`` counts every attempt."""
    return RetryPolicy(
        max_attempts=config.max_retries,
        base_delay=config.base_backoff_delay,
        backoff_multiplier=config.backoff_multiplier,
        backoff_strategy=config.backoff_strategy,
        max_delay=config.max_backoff_delay,
        jitter=config.backoff_jitter,
    )


class CatalogService(BaseService):
    """Product catalog service implementation."""

    def __init__(self, config: Optional[ServiceConfig] = None, data_source: Optional[DataSource] = None):
        super().__init__("catalog", 8020, config=config or get_config("catalog", 8020))

        self.data_source = data_source if data_source is not None else build_data_source(self.config)
        self.cache = TTLCache(
            NAMESPACE,
            shards=self.config.cache_shards,
            sweep_interval=self.config.sweep_interval_seconds
        )
        self.registry = KeyRegistry(NAMESPACE)
        self.accessor = CacheAsideAccessor(
            self.cache,
            self.registry,
            absolute_ttl=self.config.absolute_ttl_seconds,
            sliding_ttl=self.config.sliding_ttl_seconds,
            metrics=self.metrics
        )
        self.invalidator = InvalidationCoordinator(self.cache, self.registry, metrics=self.metrics)
        self.retrying = RetryingClient(build_retry_policy(self.config), name="data_source", metrics=self.metrics)
        self.catalog = ProductCatalog(
            self.data_source,
            self.accessor,
            self.invalidator,
            self.retrying,
            request_timeout=self.config.request_timeout_seconds
        )

        self._setup_catalog_routes()

    def _setup_catalog_routes(self):
        """Set up catalog-specific routes."""

        @self.app.get("/api/products", response_model=PaginatedResult[Product])
        async def get_products(
            page_number: int = Query(1, alias="pageNumber"),
            page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize"),
            search_term: Optional[str] = Query(None, alias="searchTerm"),
            category_id: Optional[int] = Query(None, alias="categoryId"),
        ):
            """Paged product listing, served from cache when possible."""
            query = PageQuery(
                page_number=page_number,
                page_size=page_size,
                search_term=search_term,
                category_id=category_id,
            )
            return await self.catalog.get_page(query)

        @self.app.put("/api/products")
        async def replace_products(items: List[ProductCreate]):
            """Replace the whole catalog."""
            count = await self.catalog.replace_all(items)
            return {"count": count}

        @self.app.post("/api/products/refresh")
        async def refresh_products():
            """Reset the catalog to the sample data."""
            count = await self.catalog.refresh_sample_data()
            return {"status": "refreshed", "count": count}

        @self.app.get("/api/product/{product_id}", response_model=Product)
        async def get_product(product_id: int):
            return await self.catalog.get_by_id(product_id)

        @self.app.post("/api/product", response_model=Product, status_code=201)
        async def create_product(item: ProductCreate):
            return await self.catalog.create(item)

        @self.app.put("/api/product/{product_id}", response_model=Product)
        async def update_product(product_id: int, item: ProductUpdate):
            return await self.catalog.update(product_id, item)

        @self.app.delete("/api/product/{product_id}", status_code=204)
        async def delete_product(product_id: int):
            await self.catalog.delete(product_id)
            return Response(status_code=204)

        @self.app.get("/api/categories", response_model=List[Category])
        async def get_categories():
            return await self.catalog.list_categories()

        @self.app.get("/api/cache/stats")
        async def get_cache_stats():
            """Get cache statistics."""
            return self.catalog.cache_stats()

    async def start(self):
        await self.cache.start()
        self.logger.info("Catalog service started", data_source=self.config.data_source)

    async def stop(self):
        await self.cache.stop()
        await self.data_source.close()
        self.logger.info("Catalog service stopped")

    async def _check_dependencies(self) -> Dict[str, Any]:
        return {"cache": "closed" if self.cache.stats()["closed"] else "ok"}


def create_app():
    """Create FastAPI application."""
    service = CatalogService()
    return service.app


if __name__ == "__main__":
    service = CatalogService()
    service.run()
