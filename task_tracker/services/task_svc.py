"""Task creation: validate the request, resolve the tenant, insert the row."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from ..models import TASK_TYPES, Application, TaskStatus
from ..store import StoreClient, StoreError, eq
from ..timeutil import parse_timestamp

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("application_id", "task_type", "due_at")


class TaskRequestError(Exception):
    """A create-task request rejected with a client-facing status and message."""

    def __init__(self, status_code: int, error: str, details: str | None = None):
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        return body


@dataclass
class CreateTaskPayload:
    application_id: str
    task_type: str
    due_at: str
    due_at_parsed: datetime


def default_title(task_type: str) -> str:
    return f"{task_type} task for application"


def validate_payload(body: object, *, now: datetime | None = None) -> CreateTaskPayload:
    """Run the local checks in order; the first failure wins."""
    if not isinstance(body, dict):
        body = {}

    if any(not body.get(name) for name in REQUIRED_FIELDS):
        raise TaskRequestError(400, "Missing required fields")

    task_type = body["task_type"]
    if task_type not in TASK_TYPES:
        raise TaskRequestError(
            400, f"Invalid task_type. Must be one of: {', '.join(TASK_TYPES)}"
        )

    now = now or datetime.now(timezone.utc)
    due_at = body["due_at"]
    parsed = parse_timestamp(due_at) if isinstance(due_at, str) else None
    if parsed is None or parsed <= now:
        raise TaskRequestError(400, "due_at must be a valid date in the future")

    return CreateTaskPayload(
        application_id=str(body["application_id"]),
        task_type=task_type,
        due_at=due_at,
        due_at_parsed=parsed,
    )


async def resolve_tenant(
    store: StoreClient,
    application_id: str,
    *,
    scope_tenant_id: str | None = None,
) -> str:
    """Return the tenant owning ``application_id``.

    Lookup errors and missing rows are reported the same way. When the caller
    passes a scope, an application from another tenant is treated as missing.
    """
    try:
        row = await store.select_one(
            "applications", "tenant_id", filters=[eq("id", application_id)]
        )
        application = Application.model_validate(row)
    except (StoreError, ValidationError) as exc:
        logger.info("Application lookup for %s failed: %s", application_id, exc)
        raise TaskRequestError(404, "Application not found") from exc

    if not application.tenant_id:
        raise TaskRequestError(404, "Application not found")
    if scope_tenant_id is not None and application.tenant_id != scope_tenant_id:
        logger.warning(
            "Application %s belongs to another tenant than %s", application_id, scope_tenant_id
        )
        raise TaskRequestError(404, "Application not found")
    return application.tenant_id


async def create_task(
    store: StoreClient,
    body: object,
    *,
    now: datetime | None = None,
    scope_tenant_id: str | None = None,
) -> str:
    """Create a follow-up task for an application and return its id.

    No dedup: identical requests create distinct rows.
    """
    payload = validate_payload(body, now=now)
    tenant_id = await resolve_tenant(
        store, payload.application_id, scope_tenant_id=scope_tenant_id
    )

    try:
        row = await store.insert("tasks", {
            "tenant_id": tenant_id,
            "related_id": payload.application_id,
            "type": payload.task_type,
            "due_at": payload.due_at,
            "title": default_title(payload.task_type),
            "status": TaskStatus.OPEN.value,
        })
    except StoreError as exc:
        logger.error("Insert Error: %s", exc.message)
        raise TaskRequestError(400, "Failed to create task", details=exc.message) from exc

    task_id = row.get("id")
    if task_id is None:
        raise TaskRequestError(400, "Failed to create task", details="Insert returned no id")
    return str(task_id)
