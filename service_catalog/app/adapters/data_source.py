"""
Data source contract consumed by the catalog.
"""

from typing import List, Optional, Protocol, Sequence, Tuple

from ..domain.models import Category, Product, ProductCreate, ProductUpdate


class DataSource(Protocol):
    """Authoritative product store.

    Implementations raise TransientError for connectivity problems and
    PermanentError subclasses (NotFoundError, ValidationError, ConflictError)
    for requests that cannot succeed. The catalog never opens transactions or
    locks on the source.
    """

    async def fetch_page(self,
                         page_number: int,
                         page_size: int,
                         search_term: Optional[str],
                         category_id: Optional[int]) -> Tuple[List[Product], int]:
        ...

    async def fetch_by_id(self, product_id: int) -> Product:
        ...

    async def create(self, item: ProductCreate) -> Product:
        ...

    async def update(self, product_id: int, item: ProductUpdate) -> Product:
        ...

    async def delete(self, product_id: int) -> None:
        ...

    async def replace_all(self, items: Sequence[ProductCreate]) -> int:
        ...

    async def list_categories(self) -> List[Category]:
        ...

    async def close(self) -> None:
        ...
