"""Tests for create-task validation and tenant resolution."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from task_tracker.services import task_svc
from task_tracker.services.task_svc import TaskRequestError, validate_payload
from task_tracker.timeutil import parse_timestamp

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def _body(**overrides):
    body = {"application_id": "A1", "task_type": "email", "due_at": "2026-03-11T09:00:00Z"}
    body.update(overrides)
    return body


def test_validate_payload_accepts_future_due_at():
    payload = validate_payload(_body(), now=NOW)
    assert payload.application_id == "A1"
    assert payload.task_type == "email"
    assert payload.due_at == "2026-03-11T09:00:00Z"
    assert payload.due_at_parsed == datetime(2026, 3, 11, 9, 0, tzinfo=timezone.utc)


def test_due_at_equal_to_now_is_rejected():
    with pytest.raises(TaskRequestError) as exc_info:
        validate_payload(_body(due_at=NOW.isoformat()), now=NOW)
    assert exc_info.value.status_code == 400
    assert exc_info.value.error == "due_at must be a valid date in the future"


def test_due_at_one_millisecond_later_is_accepted():
    later = NOW + timedelta(milliseconds=1)
    assert validate_payload(_body(due_at=later.isoformat()), now=NOW).due_at_parsed == later


@pytest.mark.parametrize("due_at", [12345, ["2026-03-11"], "2026-13-45T00:00:00Z", "tomorrow"])
def test_unparseable_due_at(due_at):
    with pytest.raises(TaskRequestError) as exc_info:
        validate_payload(_body(due_at=due_at), now=NOW)
    assert exc_info.value.error == "due_at must be a valid date in the future"


def test_presence_checked_before_type():
    with pytest.raises(TaskRequestError) as exc_info:
        validate_payload({"task_type": "bogus", "due_at": "x"}, now=NOW)
    assert exc_info.value.error == "Missing required fields"


def test_type_checked_before_date():
    with pytest.raises(TaskRequestError) as exc_info:
        validate_payload(_body(task_type="bogus", due_at="x"), now=NOW)
    assert exc_info.value.error.startswith("Invalid task_type")


def test_error_payload_includes_details_only_when_set():
    assert TaskRequestError(404, "Application not found").to_dict() == {
        "error": "Application not found"
    }
    assert TaskRequestError(400, "Failed to create task", details="boom").to_dict() == {
        "error": "Failed to create task",
        "details": "boom",
    }


def test_parse_timestamp_forms():
    assert parse_timestamp("2026-03-11") == datetime(2026, 3, 11, tzinfo=timezone.utc)
    assert parse_timestamp("2026-03-11T09:00:00z") == datetime(2026, 3, 11, 9, tzinfo=timezone.utc)
    offset = parse_timestamp("2026-03-11T09:00:00+02:00")
    assert offset == datetime(2026, 3, 11, 7, tzinfo=timezone.utc)
    local = parse_timestamp("2026-03-11T09:00:00")
    assert local is not None and local.tzinfo is not None
    assert parse_timestamp("") is None
    assert parse_timestamp(None) is None


@pytest.mark.asyncio
async def test_resolve_tenant(sql_store, application):
    assert await task_svc.resolve_tenant(sql_store, "A1") == "T1"


@pytest.mark.asyncio
async def test_resolve_tenant_missing(sql_store):
    with pytest.raises(TaskRequestError) as exc_info:
        await task_svc.resolve_tenant(sql_store, "missing")
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_resolve_tenant_outside_scope(sql_store, application):
    with pytest.raises(TaskRequestError) as exc_info:
        await task_svc.resolve_tenant(sql_store, "A1", scope_tenant_id="T9")
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_create_task_copies_tenant(sql_store, application):
    task_id = await task_svc.create_task(sql_store, _body(task_type="review"), now=NOW)
    rows = await sql_store.select("tasks")
    assert [r["id"] for r in rows] == [task_id]
    assert rows[0]["tenant_id"] == "T1"
    assert rows[0]["related_id"] == "A1"
    assert rows[0]["status"] == "open"
    assert rows[0]["title"] == "review task for application"
