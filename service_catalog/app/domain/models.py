"""
Product catalog data models.
"""

import math
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, computed_field

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class Category(BaseModel):
    """Product category."""
    id: int = Field(..., ge=1, description="Category ID")
    name: str = Field(
        ...,
        min_length=2,
        max_length=100,
        pattern=r"^[a-zA-Z0-9\s\-&]+$",
        description="Category name"
    )


class Product(BaseModel):
    """Product as stored by the data source."""
    id: int = Field(..., description="Product ID")
    name: str = Field(..., description="Product name")
    description: str = Field("", description="Product description")
    price: float = Field(..., description="Unit price")
    stock: int = Field(..., description="Units in stock")
    category_id: int = Field(..., description="Category ID")
    category: Optional[Category] = Field(None, description="Category details")


class ProductCreate(BaseModel):
    """Request model for creating a product."""
    name: str = Field(..., min_length=3, max_length=100, description="Product name")
    description: str = Field("", max_length=500, description="Product description")
    price: float = Field(..., ge=0.01, le=999999.99, description="Unit price")
    stock: int = Field(..., ge=0, le=999999, description="Units in stock")
    category_id: int = Field(..., ge=1, description="Category ID")
    category: Optional[Category] = Field(None, description="Category details")


class ProductUpdate(ProductCreate):
    """Request model for updating a product."""


class PageQuery(BaseModel):
    """Paging and filtering parameters for a product listing."""
    page_number: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    search_term: Optional[str] = None
    category_id: Optional[int] = None

    def normalized(self) -> "PageQuery":
        """Clamp paging values and trim the search term."""
        page_number = max(1, self.page_number)
        if self.page_size < 1:
            page_size = DEFAULT_PAGE_SIZE
        else:
            page_size = min(self.page_size, MAX_PAGE_SIZE)
        search = self.search_term.strip() if self.search_term else None
        return PageQuery(
            page_number=page_number,
            page_size=page_size,
            search_term=search or None,
            category_id=self.category_id,
        )


class PaginatedResult(BaseModel, Generic[T]):
    """One page of results plus paging metadata."""
    items: List[T] = Field(default_factory=list)
    page_number: int
    page_size: int
    total_count: int

    @computed_field
    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total_count / self.page_size)

    @computed_field
    @property
    def has_previous_page(self) -> bool:
        return self.page_number > 1

    @computed_field
    @property
    def has_next_page(self) -> bool:
        return self.page_number < self.total_pages
