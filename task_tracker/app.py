"""FastAPI application for the task tracker."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .store import SqlStoreClient, build_store


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = build_store(settings)
    # Auto-create tables for SQLite outside production; hosted stores own their schema
    if (
        isinstance(store, SqlStoreClient)
        and "sqlite" in settings.database_url
        and not settings.is_production
    ):
        await store.create_tables()
    app.state.store = store
    try:
        yield
    finally:
        await store.aclose()


app = FastAPI(title=settings.app_title, lifespan=lifespan)

# Import and register routers
from .routers import dashboard, health, tasks  # noqa: E402

app.include_router(tasks.router)
app.include_router(dashboard.router)
app.include_router(health.router)


@app.exception_handler(StarletteHTTPException)
async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    # Methods the router never dispatches still get the create-task error shape
    if exc.status_code == 405 and request.url.path == "/create-task":
        return JSONResponse(tasks.METHOD_NOT_ALLOWED, status_code=405)
    return await http_exception_handler(request, exc)


@app.get("/")
async def root():
    return RedirectResponse("/dashboard/today")
