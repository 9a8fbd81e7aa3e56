"""
Unit tests for the HTTP data source.
"""

import json

import httpx
import pytest

from shared.errors import (
    ConflictError,
    NotFoundError,
    PermanentError,
    TransientError,
    ValidationError,
)
from service_catalog.app.adapters import HttpDataSource
from service_catalog.app.domain.models import ProductCreate

PRODUCT = {
    "id": 7,
    "name": "Smartphone",
    "description": "Flagship smartphone",
    "price": 899.99,
    "stock": 50,
    "category_id": 101,
    "category": {"id": 101, "name": "Electronics"},
}


def _source(handler) -> HttpDataSource:
    return HttpDataSource("http://catalog.local/", transport=httpx.MockTransport(handler))


class TestHttpDataSource:
    """Test cases for HttpDataSource."""

    @pytest.mark.asyncio
    async def test_fetch_page(self):
        """Test query parameters and paginated payload parsing."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={
                "items": [PRODUCT],
                "page_number": 2,
                "page_size": 5,
                "total_count": 11,
                "total_pages": 3,
            })

        source = _source(handler)
        items, total = await source.fetch_page(2, 5, "phone", 101)
        await source.close()

        assert seen["path"] == "/api/products"
        assert seen["params"] == {"pageNumber": "2", "pageSize": "5", "searchTerm": "phone", "categoryId": "101"}
        assert total == 11
        assert items[0].name == "Smartphone"

    @pytest.mark.asyncio
    async def test_fetch_page_omits_empty_filters(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"items": [], "page_number": 1, "page_size": 10, "total_count": 0})

        source = _source(handler)
        await source.fetch_page(1, 10, None, None)

        assert seen["params"] == {"pageNumber": "1", "pageSize": "10"}

    @pytest.mark.asyncio
    async def test_fetch_by_id(self):
        source = _source(lambda request: httpx.Response(200, json=PRODUCT))

        product = await source.fetch_by_id(7)

        assert product.id == 7
        assert product.category.name == "Electronics"

    @pytest.mark.asyncio
    async def test_create_posts_json(self):
        """Test that create sends the product body."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json=dict(PRODUCT, id=37))

        source = _source(handler)
        item = ProductCreate(name="Smartphone Mini", price=499.0, stock=3, category_id=101)

        product = await source.create(item)

        assert seen["method"] == "POST"
        assert seen["body"]["name"] == "Smartphone Mini"
        assert product.id == 37

    @pytest.mark.asyncio
    async def test_delete_no_content(self):
        source = _source(lambda request: httpx.Response(204))

        assert await source.delete(7) is None

    @pytest.mark.asyncio
    async def test_replace_all_returns_count(self):
        source = _source(lambda request: httpx.Response(200, json={"count": 2}))
        items = [
            ProductCreate(name="Alpha Dock", price=1.0, stock=1, category_id=102),
            ProductCreate(name="Beta Dock", price=1.0, stock=1, category_id=102),
        ]

        assert await source.replace_all(items) == 2

    @pytest.mark.asyncio
    async def test_list_categories(self):
        source = _source(lambda request: httpx.Response(200, json=[{"id": 101, "name": "Electronics"}]))

        categories = await source.list_categories()

        assert categories[0].name == "Electronics"

    @pytest.mark.parametrize("status,error_type", [
        (404, NotFoundError),
        (400, ValidationError),
        (422, ValidationError),
        (409, ConflictError),
        (408, TransientError),
        (429, TransientError),
        (500, TransientError),
        (503, TransientError),
        (401, PermanentError),
        (403, PermanentError),
    ])
    @pytest.mark.asyncio
    async def test_status_mapping(self, status, error_type):
        """Test that status codes map onto the error taxonomy."""
        source = _source(lambda request: httpx.Response(status, json={"message": "upstream says no"}))

        with pytest.raises(error_type) as exc_info:
            await source.fetch_by_id(7)

        assert exc_info.value.details["status_code"] == status
        assert exc_info.value.message == "upstream says no"

    @pytest.mark.asyncio
    async def test_transport_error_is_transient(self):
        """Test that connection failures become TransientError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        source = _source(handler)

        with pytest.raises(TransientError) as exc_info:
            await source.fetch_page(1, 10, None, None)

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_client_reused_and_closed(self):
        """Test that one client serves every call until close."""
        source = _source(lambda request: httpx.Response(200, json=PRODUCT))

        await source.fetch_by_id(7)
        client = source._client
        await source.fetch_by_id(7)

        assert source._client is client
        await source.close()
        assert source._client is None
