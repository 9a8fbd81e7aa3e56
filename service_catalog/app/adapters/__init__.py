"""
Data source adapters for the Catalog Service.
"""

from .data_source import DataSource
from .http_source import HttpDataSource
from .memory_source import InMemoryDataSource


def build_data_source(config) -> DataSource:
    """Pick a data source implementation from service config."""
    if config.data_source == "http":
        return HttpDataSource(config.data_source_url, timeout=config.request_timeout_seconds)
    return InMemoryDataSource()


__all__ = [
    "DataSource",
    "HttpDataSource",
    "InMemoryDataSource",
    "build_data_source",
]
