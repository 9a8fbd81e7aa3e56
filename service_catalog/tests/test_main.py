"""
Unit tests for the Catalog service HTTP surface.
"""

import pytest
from fastapi.testclient import TestClient

from shared.base_service import status_for_error
from shared.config import get_config
from shared.errors import (
    CacheInternalError,
    ConflictError,
    ErrorClassification,
    NotFoundError,
    RetryError,
    TransientError,
)
from service_catalog.app.adapters import InMemoryDataSource
from service_catalog.app.main import CatalogService, build_retry_policy, create_app


class TestCatalogService:
    """Test cases for CatalogService."""

    @pytest.fixture
    def source(self):
        return InMemoryDataSource()

    @pytest.fixture
    def catalog_service(self, source):
        """Create CatalogService instance with instant retries."""
        config = get_config("catalog", 8020, base_backoff_delay=0.0, sweep_interval_seconds=3600)
        return CatalogService(config=config, data_source=source)

    @pytest.fixture
    def client(self, catalog_service):
        """Create test client."""
        with TestClient(catalog_service.app) as client:
            yield client

    @pytest.fixture
    def new_product(self):
        return {
            "name": "Docking Station",
            "description": "USB-C docking station",
            "price": 149.99,
            "stock": 12,
            "category_id": 102,
        }

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "catalog"
        assert data["dependencies"] == {"cache": "ok"}

    def test_metrics_endpoint(self, client):
        client.get("/api/products")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "cache_misses_total" in response.text

    def test_request_id_header(self, client):
        response = client.get("/api/products", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    def test_get_products_default_page(self, client):
        """Test default paging."""
        response = client.get("/api/products")

        assert response.status_code == 200
        data = response.json()
        assert data["page_number"] == 1
        assert data["page_size"] == 10
        assert data["total_count"] == 36
        assert data["total_pages"] == 4
        assert data["has_previous_page"] is False
        assert data["has_next_page"] is True

    def test_get_products_query_aliases(self, client):
        """Test search, category and paging parameters."""
        response = client.get(
            "/api/products",
            params={"pageNumber": 1, "pageSize": 2, "searchTerm": "gaming", "categoryId": 103}
        )

        data = response.json()
        assert data["total_count"] == 5
        assert len(data["items"]) == 2
        assert data["has_next_page"] is True

    def test_get_products_clamps_page_size(self, client):
        response = client.get("/api/products", params={"pageSize": 1000})

        assert response.json()["page_size"] == 100

    def test_get_products_cached(self, client, source):
        client.get("/api/products", params={"searchTerm": "Mouse"})
        client.get("/api/products", params={"searchTerm": " mouse "})

        assert source.call_counts["fetch_page"] == 1

    def test_get_product(self, client):
        response = client.get("/api/product/1")

        assert response.status_code == 200
        assert response.json()["name"] == "Laptop"

    def test_get_product_not_found(self, client):
        """Test that a missing product maps to 404."""
        response = client.get("/api/product/999")

        assert response.status_code == 404
        data = response.json()
        assert data["details"]["last_error_code"] == "NOT_FOUND"
        assert data["details"]["attempts"] == 1

    def test_create_product(self, client, new_product):
        """Test creating a product and seeing it in listings."""
        client.get("/api/products")

        response = client.post("/api/product", json=new_product)

        assert response.status_code == 201
        assert response.json()["id"] == 37
        assert client.get("/api/products").json()["total_count"] == 37

    def test_create_product_validation(self, client, new_product):
        """Test request body validation."""
        response = client.post("/api/product", json=dict(new_product, price=0))

        assert response.status_code == 422

    def test_create_duplicate_conflict(self, client, new_product):
        response = client.post("/api/product", json=dict(new_product, name="Laptop"))

        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"

    def test_create_unknown_category(self, client, new_product):
        response = client.post("/api/product", json=dict(new_product, category_id=999))

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_update_product(self, client, new_product):
        client.get("/api/product/4")

        response = client.put("/api/product/4", json=dict(new_product, name="Keyboard TKL"))

        assert response.status_code == 200
        assert client.get("/api/product/4").json()["name"] == "Keyboard TKL"

    def test_delete_product(self, client):
        response = client.delete("/api/product/2")

        assert response.status_code == 204
        assert client.get("/api/product/2").status_code == 404

    def test_delete_missing_product(self, client):
        assert client.delete("/api/product/999").status_code == 404

    def test_replace_products(self, client, new_product):
        response = client.put("/api/products", json=[new_product])

        assert response.status_code == 200
        assert response.json() == {"count": 1}
        assert client.get("/api/products").json()["total_count"] == 1

    def test_refresh_products(self, client):
        client.delete("/api/product/1")

        response = client.post("/api/products/refresh")

        assert response.status_code == 200
        assert response.json() == {"status": "refreshed", "count": 36}
        assert client.get("/api/product/1").json()["name"] == "Laptop"

    def test_categories(self, client):
        response = client.get("/api/categories")

        assert response.status_code == 200
        assert len(response.json()) == 7

    def test_cache_stats(self, client):
        client.get("/api/products")
        client.get("/api/products")

        response = client.get("/api/cache/stats")

        data = response.json()
        assert data["namespace"] == "products"
        assert data["registered_keys"] == 1
        assert data["cache"]["entries"] == 1

    def test_transient_exhaustion_maps_to_503(self, client, source):
        """Test that exhausted retries surface as service unavailable."""
        source.inject_failures(TransientError("source down"), count=3)

        response = client.get("/api/products")

        assert response.status_code == 503
        assert response.json()["details"]["classification"] == "transient"

    def test_create_after_cache_closed(self, client, catalog_service, new_product):
        """Test that a committed write is not reported as a failure."""
        client.get("/api/products")
        catalog_service.cache.close()

        response = client.post("/api/product", json=new_product)

        assert response.status_code == 201
        assert client.get("/api/products", params={"searchTerm": "docking"}).json()["total_count"] == 1

    def test_shutdown_closes_cache(self, catalog_service):
        with TestClient(catalog_service.app):
            pass

        assert catalog_service.cache.stats()["closed"] is True


class TestServiceWiring:
    """Test cases for config driven wiring."""

    def test_retry_policy_from_config(self):
        config = get_config(
            "catalog", 8020,
            max_retries=5,
            base_backoff_delay=0.5,
            backoff_multiplier=2.0,
            backoff_strategy="exponential"
        )

        policy = build_retry_policy(config)

        assert policy.max_attempts == 5
        assert policy.base_delay == 0.5
        assert policy.backoff_multiplier == 2.0
        assert policy.backoff_strategy == "exponential"

    def test_create_app(self):
        app = create_app()

        paths = {route.path for route in app.routes}
        assert "/api/products" in paths
        assert "/api/product/{product_id}" in paths

    def test_http_data_source_selected(self):
        config = get_config("catalog", 8020, data_source="http", data_source_url="http://upstream:5132")

        service = CatalogService(config=config)

        assert service.data_source.base_url == "http://upstream:5132"


class TestStatusForError:
    """Test cases for error to HTTP status mapping."""

    def test_domain_errors(self):
        assert status_for_error(NotFoundError()) == 404
        assert status_for_error(ConflictError()) == 409

    def test_cache_internal_error_is_server_error(self):
        assert status_for_error(CacheInternalError("Cache is closed")) == 500

    def test_retry_errors(self):
        transient = RetryError("down", TransientError(), 3, 1.0, ErrorClassification.TRANSIENT)
        not_found = RetryError("missing", NotFoundError(), 1, 0.1, ErrorClassification.PERMANENT)
        unknown = RetryError("bad payload", KeyError("id"), 1, 0.1, ErrorClassification.PERMANENT)

        assert status_for_error(transient) == 503
        assert status_for_error(not_found) == 404
        assert status_for_error(unknown) == 502
