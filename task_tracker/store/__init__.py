"""Data store gateway: the only place that holds store credentials."""

from __future__ import annotations

from ..config import TrackerSettings
from .base import Filter, StoreClient, StoreError, eq, gte, lte
from .rest import RestStoreClient
from .sql import SqlStoreClient

__all__ = [
    "Filter",
    "RestStoreClient",
    "SqlStoreClient",
    "StoreClient",
    "StoreError",
    "build_store",
    "eq",
    "gte",
    "lte",
]


def build_store(settings_obj: TrackerSettings) -> StoreClient:
    """Construct the configured store client. Call once per process."""
    backend = settings_obj.store_backend.strip().lower()
    if backend == "rest":
        if not settings_obj.rest_url or not settings_obj.store_service_key:
            raise RuntimeError(
                "TASKS_STORE_BACKEND=rest requires TASKS_STORE_URL and TASKS_STORE_SERVICE_KEY"
            )
        return RestStoreClient(settings_obj.rest_url, settings_obj.store_service_key)
    if backend == "sql":
        return SqlStoreClient(settings_obj.database_url, echo=settings_obj.echo_sql)
    raise RuntimeError(f"Unknown store backend: {settings_obj.store_backend!r}")
