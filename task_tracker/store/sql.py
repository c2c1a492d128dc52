"""Store backend over SQLAlchemy async, for local development and tests."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import DateTime, String, Table, func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..timeutil import parse_timestamp, to_utc
from .base import Filter, StoreError, check_filters

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class ApplicationRow(Base):
    __tablename__ = "applications"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    tenant_id: Mapped[str] = mapped_column(String(64), index=True)
    candidate_name: Mapped[str | None] = mapped_column(String(200), default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class TaskRow(Base):
    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    tenant_id: Mapped[str] = mapped_column(String(64), index=True)
    related_id: Mapped[str] = mapped_column(String(64), index=True)
    type: Mapped[str] = mapped_column(String(20))
    due_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    title: Mapped[str | None] = mapped_column(String(300), default=None)
    status: Mapped[str] = mapped_column(String(20), default="open")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<TaskRow {self.title!r}>"


TABLES: dict[str, Table] = {
    ApplicationRow.__tablename__: ApplicationRow.__table__,
    TaskRow.__tablename__: TaskRow.__table__,
}


def _table(name: str) -> Table:
    try:
        return TABLES[name]
    except KeyError:
        raise StoreError(f'relation "{name}" does not exist', code="42P01") from None


def _column(table: Table, name: str):
    try:
        return table.c[name]
    except KeyError:
        raise StoreError(f'column {table.name}.{name} does not exist', code="42703") from None


def _coerce(table: Table, column: str, value: Any) -> Any:
    """Bind timestamps as UTC datetimes; strings that "work" in SQLite fail elsewhere."""
    if value is None or not isinstance(_column(table, column).type, DateTime):
        return value
    parsed = parse_timestamp(value)
    if parsed is None:
        raise StoreError(f'invalid input syntax for type timestamp: "{value}"', code="22007")
    return to_utc(parsed)


def _columns(table: Table, columns: str) -> list:
    if columns.strip() == "*":
        return list(table.c)
    return [_column(table, name.strip()) for name in columns.split(",") if name.strip()]


def _where(table: Table, filters: Sequence[Filter]) -> list:
    check_filters(filters)
    clauses = []
    for name, op, value in filters:
        col = _column(table, name)
        value = _coerce(table, name, value)
        if op == "eq":
            clauses.append(col == value)
        elif op == "gte":
            clauses.append(col >= value)
        else:
            clauses.append(col <= value)
    return clauses


class SqlStoreClient:
    """StoreClient implementation backed by an async SQLAlchemy engine."""

    def __init__(self, database_url: str, *, echo: bool = False):
        self.engine: AsyncEngine = create_async_engine(database_url, echo=echo)
        self._session = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)

    @classmethod
    def from_engine(cls, engine: AsyncEngine) -> SqlStoreClient:
        """Wrap a pre-built engine (useful for testing)."""
        store = cls.__new__(cls)
        store.engine = engine
        store._session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        return store

    async def create_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def _execute(self, stmt, *, commit: bool = False):
        try:
            async with self._session() as session:
                result = await session.execute(stmt)
                rows = [dict(row._mapping) for row in result] if result.returns_rows else []
                if commit:
                    await session.commit()
                return rows
        except SQLAlchemyError as exc:
            orig = getattr(exc, "orig", None)
            logger.warning("Store statement failed: %s", orig or exc)
            raise StoreError(str(orig or exc)) from exc

    async def select(
        self,
        table: str,
        columns: str = "*",
        *,
        filters: Sequence[Filter] = (),
        order: tuple[str, bool] | None = None,
    ) -> list[dict[str, Any]]:
        tbl = _table(table)
        stmt = select(*_columns(tbl, columns)).where(*_where(tbl, filters))
        if order is not None:
            name, ascending = order
            col = _column(tbl, name)
            stmt = stmt.order_by(col.asc() if ascending else col.desc())
        return await self._execute(stmt)

    async def select_one(
        self,
        table: str,
        columns: str = "*",
        *,
        filters: Sequence[Filter] = (),
    ) -> dict[str, Any]:
        rows = await self.select(table, columns, filters=filters)
        if len(rows) != 1:
            raise StoreError(
                f"Expected exactly one row from {table}, found {len(rows)}",
                code="PGRST116",
            )
        return rows[0]

    async def insert(self, table: str, values: dict[str, Any]) -> dict[str, Any]:
        tbl = _table(table)
        row = {name: _coerce(tbl, name, value) for name, value in values.items()}
        stmt = insert(tbl).values(**row).returning(*tbl.c)
        rows = await self._execute(stmt, commit=True)
        return rows[0]

    async def update(
        self,
        table: str,
        values: dict[str, Any],
        *,
        filters: Sequence[Filter],
    ) -> None:
        if not filters:
            raise ValueError("Refusing to update without a filter")
        tbl = _table(table)
        row = {name: _coerce(tbl, name, value) for name, value in values.items()}
        stmt = update(tbl).where(*_where(tbl, filters)).values(**row)
        await self._execute(stmt, commit=True)

    async def aclose(self) -> None:
        await self.engine.dispose()
