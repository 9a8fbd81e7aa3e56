"""
HTTP data source for a remote product API.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from shared.errors import (
    ConflictError,
    NotFoundError,
    PermanentError,
    TransientError,
    ValidationError,
)
from shared.logging import get_logger
from ..domain.models import Category, PaginatedResult, Product, ProductCreate, ProductUpdate

TRANSIENT_STATUS_CODES = (408, 429)


class HttpDataSource:
    """Talks to a product API laid out like this service's own routes.

    Status codes are mapped onto the error taxonomy so the retrying client
    can classify failures: 5xx, 408, 429 and transport errors are transient,
    everything else is permanent.
    """

    def __init__(self,
                 base_url: str,
                 timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.logger = get_logger("catalog.data_source.http")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport
            )
        return self._client

    async def fetch_page(self,
                         page_number: int,
                         page_size: int,
                         search_term: Optional[str],
                         category_id: Optional[int]) -> Tuple[List[Product], int]:
        params: Dict[str, Any] = {"pageNumber": page_number, "pageSize": page_size}
        if search_term:
            params["searchTerm"] = search_term
        if category_id is not None:
            params["categoryId"] = category_id

        data = await self._request("GET", "/api/products", "fetch_page", params=params)
        page = PaginatedResult[Product].model_validate(data)
        return page.items, page.total_count

    async def fetch_by_id(self, product_id: int) -> Product:
        data = await self._request("GET", f"/api/product/{product_id}", "fetch_by_id")
        return Product.model_validate(data)

    async def create(self, item: ProductCreate) -> Product:
        data = await self._request("POST", "/api/product", "create", json=item.model_dump(mode="json"))
        return Product.model_validate(data)

    async def update(self, product_id: int, item: ProductUpdate) -> Product:
        data = await self._request(
            "PUT", f"/api/product/{product_id}", "update", json=item.model_dump(mode="json")
        )
        return Product.model_validate(data)

    async def delete(self, product_id: int) -> None:
        await self._request("DELETE", f"/api/product/{product_id}", "delete")

    async def replace_all(self, items: Sequence[ProductCreate]) -> int:
        payload = [item.model_dump(mode="json") for item in items]
        data = await self._request("PUT", "/api/products", "replace_all", json=payload)
        return int(data.get("count", len(items))) if isinstance(data, dict) else len(items)

    async def list_categories(self) -> List[Category]:
        data = await self._request("GET", "/api/categories", "list_categories")
        return [Category.model_validate(row) for row in data]

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, operation: str, **kwargs) -> Any:
        """Send one request and map the response onto the error taxonomy."""
        client = self._get_client()
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            self.logger.warning("Data source unreachable", operation=operation, path=path, error=str(exc))
            raise TransientError(
                f"Data source unreachable during {operation}: {exc}",
                details={"operation": operation, "path": path}
            ) from exc

        status = response.status_code
        if status == 204:
            return None
        if 200 <= status < 300:
            self.logger.debug("Data source request succeeded", operation=operation, path=path, status_code=status)
            return response.json()

        details = {"operation": operation, "path": path, "status_code": status, "body": response.text}
        message = self._error_message(response)

        if status == 404:
            self.logger.info("Data source item not found", operation=operation, path=path)
            raise NotFoundError(message or "Item not found", details=details)
        if status in (400, 422):
            raise ValidationError(message or "Validation failed", details=details)
        if status == 409:
            raise ConflictError(message or "Conflict", details=details)

        self.logger.error(
            "Data source request failed",
            operation=operation,
            path=path,
            status_code=status,
            response=response.text
        )
        if status in TRANSIENT_STATUS_CODES or status >= 500:
            raise TransientError(message or f"Unexpected status {status}", details=details)
        raise PermanentError(message or f"Unexpected status {status}", details=details)

    @staticmethod
    def _error_message(response: httpx.Response) -> Optional[str]:
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            message = body.get("message") or body.get("detail")
            return message if isinstance(message, str) else None
        return None
