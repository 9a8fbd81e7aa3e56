"""
Shared utilities for the Catalog Access Layer.

This package aggregates common building blocks consumed by services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Error taxonomy (transient, permanent, cache-internal, cancelled)
- deadline: Time budgets and cancellation for async calls
- retry: Outcome-driven retry with backoff
- base_service: FastAPI service skeleton with health and metrics routes

Do not import from service packages into shared/.
"""
