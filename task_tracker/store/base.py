"""Store client protocol shared by the REST and SQL backends."""

from __future__ import annotations

from typing import Any, Protocol, Sequence

FILTER_OPS = ("eq", "gte", "lte")

# (column, op, value) where op is one of FILTER_OPS
Filter = tuple[str, str, Any]


class StoreError(Exception):
    """Any failure reported by (or while talking to) the data store."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code


def eq(column: str, value: Any) -> Filter:
    return (column, "eq", value)


def gte(column: str, value: Any) -> Filter:
    return (column, "gte", value)


def lte(column: str, value: Any) -> Filter:
    return (column, "lte", value)


def check_filters(filters: Sequence[Filter]) -> None:
    for column, op, _ in filters:
        if op not in FILTER_OPS:
            raise ValueError(f"Unsupported filter op {op!r} on {column!r}")


class StoreClient(Protocol):
    """Thin query surface over the applications/tasks tables."""

    async def select(
        self,
        table: str,
        columns: str = "*",
        *,
        filters: Sequence[Filter] = (),
        order: tuple[str, bool] | None = None,
    ) -> list[dict[str, Any]]: ...

    async def select_one(
        self,
        table: str,
        columns: str = "*",
        *,
        filters: Sequence[Filter] = (),
    ) -> dict[str, Any]: ...

    async def insert(self, table: str, values: dict[str, Any]) -> dict[str, Any]: ...

    async def update(
        self,
        table: str,
        values: dict[str, Any],
        *,
        filters: Sequence[Filter],
    ) -> None: ...

    async def aclose(self) -> None: ...
