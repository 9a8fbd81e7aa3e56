"""
Product catalog: cached reads, direct writes.
"""

from typing import Any, Dict, List, Optional, Sequence, TYPE_CHECKING

from shared.deadline import Deadline
from shared.logging import get_logger, set_operation
from shared.retry import RetryingClient
from ..caching import CacheAsideAccessor, InvalidationCoordinator
from .models import Category, PageQuery, PaginatedResult, Product, ProductCreate, ProductUpdate
from .seed import sample_products

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..adapters.data_source import DataSource


class ProductCatalog:
    """Consumer-facing product operations.

    Reads go through the cache-aside accessor, and a miss is fetched from the
    data source by the retrying client. Writes go straight to the data source
    and drop every cached page once they have succeeded.
    """

    def __init__(self,
                 data_source: "DataSource",
                 accessor: CacheAsideAccessor,
                 invalidator: InvalidationCoordinator,
                 retrying: RetryingClient,
                 request_timeout: Optional[float] = None):
        self.data_source = data_source
        self.accessor = accessor
        self.invalidator = invalidator
        self.retrying = retrying
        self.request_timeout = request_timeout
        self.logger = get_logger("catalog.products")

    def _deadline(self, deadline: Optional[Deadline]) -> Optional[Deadline]:
        if deadline is not None:
            return deadline
        if self.request_timeout is None:
            return None
        return Deadline(timeout=self.request_timeout)

    async def get_page(self,
                       query: Optional[PageQuery] = None,
                       deadline: Optional[Deadline] = None) -> PaginatedResult[Product]:
        """One page of products matching the query."""
        set_operation("get_page")
        query = (query or PageQuery()).normalized()
        deadline = self._deadline(deadline)
        key = self.accessor.build_key(query.page_number, query.page_size, query.search_term, query.category_id)

        async def fetch() -> PaginatedResult[Product]:
            items, total_count = await self.retrying.execute(
                lambda: self.data_source.fetch_page(
                    query.page_number, query.page_size, query.search_term, query.category_id
                ),
                deadline=deadline
            )
            return PaginatedResult[Product](
                items=items,
                page_number=query.page_number,
                page_size=query.page_size,
                total_count=total_count,
            )

        return await self.accessor.get_or_compute(key, fetch, deadline=deadline)

    async def get_by_id(self, product_id: int, deadline: Optional[Deadline] = None) -> Product:
        """A single product; NotFoundError surfaces wrapped in a permanent RetryError."""
        set_operation("get_by_id")
        deadline = self._deadline(deadline)
        key = self.accessor.build_item_key(product_id)

        async def fetch() -> Product:
            return await self.retrying.execute(
                lambda: self.data_source.fetch_by_id(product_id),
                deadline=deadline
            )

        return await self.accessor.get_or_compute(key, fetch, deadline=deadline)

    async def list_categories(self, deadline: Optional[Deadline] = None) -> List[Category]:
        set_operation("list_categories")
        return await self.retrying.execute(self.data_source.list_categories, deadline=self._deadline(deadline))

    async def create(self, item: ProductCreate) -> Product:
        set_operation("create")
        product = await self.data_source.create(item)
        self._invalidate("create")
        return product

    async def update(self, product_id: int, item: ProductUpdate) -> Product:
        set_operation("update")
        product = await self.data_source.update(product_id, item)
        self._invalidate("update")
        return product

    async def delete(self, product_id: int) -> None:
        set_operation("delete")
        await self.data_source.delete(product_id)
        self._invalidate("delete")

    async def replace_all(self, items: Sequence[ProductCreate]) -> int:
        set_operation("replace_all")
        count = await self.data_source.replace_all(items)
        self._invalidate("replace_all")
        return count

    async def refresh_sample_data(self) -> int:
        """Reset the data source to the sample catalog."""
        items = [
            ProductCreate(**product.model_dump(exclude={"id"}))
            for product in sample_products()
        ]
        return await self.replace_all(items)

    def cache_stats(self) -> Dict[str, Any]:
        cache_stats = self.accessor.cache.stats()
        if self.accessor.metrics is not None and not cache_stats["closed"]:
            self.accessor.metrics.set_gauge(
                "cache_entries", cache_stats["entries"], namespace=self.accessor.namespace
            )
        return {
            "namespace": self.accessor.namespace,
            "cache": cache_stats,
            "registered_keys": self.accessor.registry.count(),
            "retry": self.retrying.stats.as_dict(),
        }

    def _invalidate(self, operation: str):
        removed = self.invalidator.invalidate_all()
        self.logger.info("Cache invalidated after write", operation=operation, removed=removed)
