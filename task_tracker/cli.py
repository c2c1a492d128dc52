"""Task tracker CLI."""

import asyncio
import json
import logging
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from .config import settings
from .services import task_svc
from .services.today_svc import TodayBoard
from .store import SqlStoreClient, build_store

app = typer.Typer(
    name="task-tracker",
    help="Follow-up tasks for the applicant pipeline",
    no_args_is_help=True,
)
console = Console()


def _setup_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _output_result(result: dict[str, Any]) -> None:
    console.print_json(json.dumps(result, default=str))


async def _open_store():
    store = build_store(settings)
    if isinstance(store, SqlStoreClient) and "sqlite" in settings.database_url:
        await store.create_tables()
    return store


@app.command("serve")
def serve(
    port: int = typer.Option(8024, "--port", "-p", help="Port to run on"),
    host: str = typer.Option("127.0.0.1", "--host", help="Host to bind to"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Launch the create-task endpoint and the today dashboard."""
    import uvicorn

    _setup_logging()
    console.print(f"[bold cyan]Starting Task Tracker at http://{host}:{port}[/bold cyan]")
    uvicorn.run(
        "task_tracker.app:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command("today")
def today():
    """List tasks due today."""
    _setup_logging()

    async def _today():
        store = await _open_store()
        try:
            board = TodayBoard(store, tz=settings.tzinfo)
            await board.refresh()
            return board
        finally:
            await store.aclose()

    board = asyncio.run(_today())
    if board.error:
        console.print(f"[red]{board.error}[/red]")
        raise typer.Exit(1)
    if not board.tasks:
        console.print("No tasks due today")
        return

    table = Table(title="Today's Tasks")
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Type")
    table.add_column("App ID")
    table.add_column("Due At")
    table.add_column("Status")
    for t in board.tasks:
        local = t.due_at.astimezone(settings.tzinfo) if settings.tzinfo else t.due_at.astimezone()
        color = "green" if t.is_completed else "yellow"
        table.add_row(
            t.id,
            t.title or "(No Title)",
            t.type,
            t.related_id,
            local.strftime("%H:%M"),
            f"[{color}]{t.status}[/{color}]",
        )
    console.print(table)


@app.command("create")
def create(
    application_id: str = typer.Argument(..., help="Application the task is for"),
    task_type: str = typer.Option("call", "--type", "-t", help="call, email or review"),
    due_at: str = typer.Option(..., "--due", "-d", help="ISO-8601 due timestamp"),
):
    """Create a follow-up task for an application."""
    _setup_logging()

    async def _create():
        store = await _open_store()
        try:
            return await task_svc.create_task(store, {
                "application_id": application_id,
                "task_type": task_type,
                "due_at": due_at,
            })
        finally:
            await store.aclose()

    try:
        task_id = asyncio.run(_create())
    except task_svc.TaskRequestError as exc:
        _output_result(exc.to_dict())
        raise typer.Exit(1)
    _output_result({"success": True, "task_id": task_id})


@app.command("complete")
def complete(task_id: str = typer.Argument(..., help="Task to mark completed")):
    """Mark a task completed."""
    _setup_logging()

    async def _complete():
        store = await _open_store()
        try:
            board = TodayBoard(store, tz=settings.tzinfo)
            ok = await board.mark_complete(task_id)
            return ok, board
        finally:
            await store.aclose()

    ok, board = asyncio.run(_complete())
    if not ok:
        console.print(f"[red]{board.alerts[-1]}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Task {task_id} completed[/green]")


if __name__ == "__main__":
    app()
