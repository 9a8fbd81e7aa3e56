"""
Domain package for the Catalog Service.

Holds the product models and the ProductCatalog, which serves reads through
the cache-aside accessor and sends writes straight to the data source.
"""

from .models import (
    Category,
    PageQuery,
    PaginatedResult,
    Product,
    ProductCreate,
    ProductUpdate,
)
from .catalog import ProductCatalog

__all__ = [
    "Category",
    "PageQuery",
    "PaginatedResult",
    "Product",
    "ProductCreate",
    "ProductUpdate",
    "ProductCatalog",
]
