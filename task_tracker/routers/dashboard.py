"""Today dashboard routes."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Request
from fastapi.templating import Jinja2Templates

from ..config import settings
from ..deps import get_store
from ..services.today_svc import TodayBoard
from ..store import StoreClient

router = APIRouter(tags=["dashboard"])
templates = Jinja2Templates(directory=str(settings.templates_dir))


def _local_time(value: datetime) -> str:
    tz = settings.tzinfo
    local = value.astimezone(tz) if tz else value.astimezone()
    return local.strftime("%H:%M")


templates.env.filters["local_time"] = _local_time


def _render_table(request: Request, board: TodayBoard):
    return templates.TemplateResponse(request, "partials/today_table.html", {
        "tasks": board.tasks,
        "error": board.error,
        "alerts": board.alerts,
    })


@router.get("/dashboard/today")
async def today_page(request: Request):
    return templates.TemplateResponse(request, "dashboard/today.html", {
        "title": "Today's Tasks",
    })


@router.get("/dashboard/today/table")
async def today_table(request: Request, store: StoreClient = Depends(get_store)):
    board = TodayBoard(store, tz=settings.tzinfo)
    await board.refresh()
    return _render_table(request, board)


@router.post("/dashboard/today/tasks/{task_id}/complete")
async def complete_task(
    request: Request,
    task_id: str,
    store: StoreClient = Depends(get_store),
):
    board = TodayBoard(store, tz=settings.tzinfo)
    await board.refresh()
    await board.mark_complete(task_id)
    return _render_table(request, board)
