"""FastAPI dependencies for the store client and the upstream tenant context."""

from __future__ import annotations

from fastapi import Request

from .config import settings
from .store import StoreClient


def get_store(request: Request) -> StoreClient:
    """The process-wide store client built in the app lifespan."""
    return request.app.state.store


def get_tenant_scope(request: Request) -> str | None:
    """Tenant id asserted by the upstream gateway, when scoping is enabled.

    This service does no authentication itself; the header is trusted as-is.
    """
    if not settings.enforce_tenant_scope:
        return None
    value = request.headers.get(settings.tenant_header, "").strip()
    return value or None
