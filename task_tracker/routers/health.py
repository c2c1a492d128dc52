"""Health and readiness routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from ..deps import get_store
from ..store import StoreClient, StoreError, eq

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
def health_check():
    return {"status": "healthy", "service": "tasks"}


@router.get("/ready")
async def readiness_check(store: StoreClient = Depends(get_store)):
    try:
        await store.select("tasks", "id", filters=[eq("id", "__ready__")])
    except StoreError:
        logger.warning("Store readiness check failed", exc_info=True)
        return {"status": "degraded", "service": "tasks", "store": "error"}
    return {"status": "ready", "service": "tasks", "store": "ok"}
