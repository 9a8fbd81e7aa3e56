"""
In-memory product data source.
"""

import asyncio
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from shared.errors import ConflictError, NotFoundError, ValidationError
from shared.logging import get_logger
from ..domain.models import Category, Product, ProductCreate, ProductUpdate
from ..domain.seed import sample_categories, sample_products


class InMemoryDataSource:
    """Data source backed by a dict, seeded with the sample catalog.

    ``latency`` adds an artificial delay to every call. ``inject_failures``
    makes the next calls raise a given error, which lets tests and demos
    exercise the retry path without a flaky network.
    """

    def __init__(self,
                 products: Optional[Iterable[Product]] = None,
                 categories: Optional[Iterable[Category]] = None,
                 latency: float = 0.0):
        self.logger = get_logger("catalog.data_source.memory")
        self.latency = latency
        self.call_counts: Dict[str, int] = {}
        self._categories: Dict[int, Category] = {
            category.id: category
            for category in (categories if categories is not None else sample_categories())
        }
        self._products: Dict[int, Product] = {}
        self._next_id = 1
        self._pending_failures: List[Exception] = []
        self._lock = asyncio.Lock()

        for product in (products if products is not None else sample_products()):
            self._products[product.id] = product
            self._next_id = max(self._next_id, product.id + 1)

    def inject_failures(self, error: Exception, count: int = 1):
        """Make the next ``count`` calls raise ``error``."""
        self._pending_failures.extend([error] * count)

    async def _enter(self, operation: str):
        self.call_counts[operation] = self.call_counts.get(operation, 0) + 1
        if self.latency:
            await asyncio.sleep(self.latency)
        if self._pending_failures:
            error = self._pending_failures.pop(0)
            self.logger.debug("Injected data source failure", operation=operation, error=str(error))
            raise error

    async def fetch_page(self,
                         page_number: int,
                         page_size: int,
                         search_term: Optional[str],
                         category_id: Optional[int]) -> Tuple[List[Product], int]:
        await self._enter("fetch_page")
        async with self._lock:
            products = list(self._products.values())

        if search_term:
            needle = search_term.strip().casefold()
            products = [p for p in products if needle in p.name.casefold()]
        if category_id is not None:
            products = [p for p in products if p.category_id == category_id]

        products.sort(key=lambda p: (p.name.casefold(), p.id))
        start = (page_number - 1) * page_size
        return products[start:start + page_size], len(products)

    async def fetch_by_id(self, product_id: int) -> Product:
        await self._enter("fetch_by_id")
        async with self._lock:
            product = self._products.get(product_id)
        if product is None:
            raise NotFoundError(f"Product with ID {product_id} not found", details={"product_id": product_id})
        return product

    async def create(self, item: ProductCreate) -> Product:
        await self._enter("create")
        async with self._lock:
            self._ensure_unique_name(item.name)
            product = self._build_product(self._next_id, item)
            self._products[product.id] = product
            self._next_id += 1
        self.logger.info("Product created", product_id=product.id)
        return product

    async def update(self, product_id: int, item: ProductUpdate) -> Product:
        await self._enter("update")
        async with self._lock:
            if product_id not in self._products:
                raise NotFoundError(f"Product with ID {product_id} not found", details={"product_id": product_id})
            self._ensure_unique_name(item.name, exclude_id=product_id)
            product = self._build_product(product_id, item)
            self._products[product_id] = product
        self.logger.info("Product updated", product_id=product_id)
        return product

    async def delete(self, product_id: int) -> None:
        await self._enter("delete")
        async with self._lock:
            if self._products.pop(product_id, None) is None:
                raise NotFoundError(f"Product with ID {product_id} not found", details={"product_id": product_id})
        self.logger.info("Product deleted", product_id=product_id)

    async def replace_all(self, items: Sequence[ProductCreate]) -> int:
        await self._enter("replace_all")
        async with self._lock:
            products: Dict[int, Product] = {}
            for index, item in enumerate(items, start=1):
                products[index] = self._build_product(index, item)
            self._products = products
            self._next_id = len(products) + 1
        self.logger.info("Catalog replaced", count=len(items))
        return len(items)

    async def list_categories(self) -> List[Category]:
        await self._enter("list_categories")
        return sorted(self._categories.values(), key=lambda c: c.id)

    async def close(self) -> None:
        return None

    def _ensure_unique_name(self, name: str, exclude_id: Optional[int] = None):
        folded = name.strip().casefold()
        for product in self._products.values():
            if product.id != exclude_id and product.name.casefold() == folded:
                raise ConflictError(
                    f"A product named '{name}' already exists",
                    details={"name": name, "product_id": product.id}
                )

    def _build_product(self, product_id: int, item: ProductCreate) -> Product:
        category = item.category
        if category is not None:
            if category.id != item.category_id:
                raise ValidationError(
                    "Category ID does not match category",
                    details={"category_id": item.category_id, "category": category.id}
                )
            self._categories.setdefault(category.id, category)
        else:
            category = self._categories.get(item.category_id)
            if category is None:
                raise ValidationError(
                    f"Unknown category {item.category_id}",
                    details={"category_id": item.category_id}
                )
        return Product(
            id=product_id,
            name=item.name.strip(),
            description=item.description,
            price=item.price,
            stock=item.stock,
            category_id=item.category_id,
            category=category,
        )
