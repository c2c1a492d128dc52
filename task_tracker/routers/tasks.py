"""Create-task JSON endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..deps import get_store, get_tenant_scope
from ..services import task_svc
from ..store import StoreClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tasks"])

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "CONNECT"]
METHOD_NOT_ALLOWED = {"error": "Method not allowed"}


def _json(status_code: int, body: dict) -> JSONResponse:
    return JSONResponse(body, status_code=status_code, media_type="application/json")


@router.api_route("/create-task", methods=ALL_METHODS)
async def create_task(
    request: Request,
    store: StoreClient = Depends(get_store),
    scope_tenant_id: str | None = Depends(get_tenant_scope),
):
    if request.method != "POST":
        return _json(405, METHOD_NOT_ALLOWED)

    try:
        body = await request.json()
        task_id = await task_svc.create_task(store, body, scope_tenant_id=scope_tenant_id)
    except task_svc.TaskRequestError as exc:
        return _json(exc.status_code, exc.to_dict())
    except Exception:
        logger.exception("Unhandled error in create-task")
        return _json(500, {"error": "Internal server error"})

    return _json(200, {"success": True, "task_id": task_id})
