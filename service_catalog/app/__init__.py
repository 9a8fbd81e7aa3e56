"""
Catalog Service package for the Catalog Access Layer.

The catalog serves product listings and lookups, with:
- Cache-aside reads: dual-expiration TTL cache plus a key registry per namespace
- Bulk invalidation after successful writes
- Retries with backoff for transient data source failures

Structure:
- app.main: FastAPI app and routes.
- app.adapters: Data source protocol plus in-memory and HTTP implementations.
- app.caching: TTL cache, key registry, accessor and invalidation.
- app.domain: Product models, sample data and the ProductCatalog.
"""
