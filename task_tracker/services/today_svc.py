"""Today's tasks: date window, fetch, and the two-phase completion protocol."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time, tzinfo

from ..models import Task, TaskStatus
from ..store import StoreClient, StoreError, eq, gte, lte

logger = logging.getLogger(__name__)

LOAD_ERROR = "Failed to load tasks"
UPDATE_ALERT = "Failed to update task"


def today_bounds(now: datetime | None = None, tz: tzinfo | None = None) -> tuple[datetime, datetime]:
    """Inclusive [00:00:00.000, 23:59:59.999] of the local day containing ``now``."""
    if now is None:
        now = datetime.now(tz)
    elif tz is not None:
        now = now.astimezone(tz)
    # An aware ``now`` carries its own zone; a naive one is server wall-clock time
    tz = tz or now.tzinfo
    day = now.date()
    # Localize each bound on its own so DST days get the right offsets
    if tz is not None:
        start = datetime.combine(day, time(), tzinfo=tz)
        end = datetime.combine(day, time(23, 59, 59, 999000), tzinfo=tz)
    else:
        start = datetime.combine(day, time()).astimezone()
        end = datetime.combine(day, time(23, 59, 59, 999000)).astimezone()
    return start, end


async def fetch_today(
    store: StoreClient,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> list[Task]:
    start, end = today_bounds(now, tz)
    rows = await store.select(
        "tasks",
        filters=[gte("due_at", start), lte("due_at", end)],
        order=("due_at", True),
    )
    return [Task.model_validate(row) for row in rows]


async def set_completed(store: StoreClient, task_id: str) -> None:
    await store.update(
        "tasks", {"status": TaskStatus.COMPLETED.value}, filters=[eq("id", task_id)]
    )


@dataclass
class PendingCompletion:
    """A completion shown locally but not yet confirmed by the store."""

    task_id: str
    previous_status: str | None


class TodayBoard:
    """View state for the today dashboard.

    ``tasks`` reflects the last fetch plus any speculative completions.
    Completions are applied locally first (``begin_complete``) and then
    confirmed or reverted by a full re-read (``confirm``); there is no
    local rollback and no retry of a failed write.
    """

    def __init__(
        self,
        store: StoreClient,
        *,
        tz: tzinfo | None = None,
        clock=None,
    ):
        self.store = store
        self.tz = tz
        self._clock = clock
        self.tasks: list[Task] = []
        self.loading = False
        self.error: str | None = None
        self.alerts: list[str] = []

    def _now(self) -> datetime | None:
        return self._clock() if self._clock else None

    async def refresh(self) -> None:
        self.loading = True
        self.error = None
        try:
            self.tasks = await fetch_today(self.store, now=self._now(), tz=self.tz)
        except Exception:
            logger.warning("Loading today's tasks failed", exc_info=True)
            self.tasks = []
            self.error = LOAD_ERROR
        finally:
            self.loading = False

    def get(self, task_id: str) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def begin_complete(self, task_id: str) -> PendingCompletion:
        """Phase one: show the task as completed before the store agrees."""
        previous = None
        updated: list[Task] = []
        for task in self.tasks:
            if task.id == task_id:
                previous = task.status
                task = task.model_copy(update={"status": TaskStatus.COMPLETED.value})
            updated.append(task)
        self.tasks = updated
        return PendingCompletion(task_id=task_id, previous_status=previous)

    async def confirm(self, pending: PendingCompletion) -> bool:
        """Phase two: write the status, then re-read to settle on store truth."""
        try:
            await set_completed(self.store, pending.task_id)
        except StoreError as exc:
            logger.warning("Completing task %s failed: %s", pending.task_id, exc.message)
            self.alerts.append(UPDATE_ALERT)
            await self.refresh()
            return False
        await self.refresh()
        return True

    async def mark_complete(self, task_id: str) -> bool:
        return await self.confirm(self.begin_complete(task_id))
