"""
SQLAlchemy integration — order records on a relational table.

    metadata = MetaData()
    table = orders_table(metadata, settings.record_store_name)
    store = SQLAlchemyRecordStore(session_factory, table, dialect="sqlite")

Items are kept as JSON; every other attribute gets its own column.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy import JSON, Column, Float, MetaData, String, Table, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from combinators import lift as L
from kungfu import Result

from ordergate.errors import StoreError
from ordergate.idempotency._sqlalchemy import upsert_statement


_COLUMNS = ("pk", "sk", "id", "customerId", "items", "total", "status", "created", "updated")


def orders_table(metadata: MetaData, name: str) -> Table:
    """Orders table. (pk, sk) is the composite primary key."""
    return Table(
        name,
        metadata,
        Column("pk", String(64), primary_key=True),
        Column("sk", String(64), primary_key=True),
        Column("id", String(36), nullable=False),
        Column("customerId", String(255), nullable=False),
        Column("items", JSON, nullable=False),
        Column("total", Float, nullable=False),
        Column("status", String(20), nullable=False),
        Column("created", String(40), nullable=False),
        Column("updated", String(40), nullable=False),
    )


class SQLAlchemyRecordStore:
    """Record store over an async SQLAlchemy session factory."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        table: Table,
        *,
        dialect: str = "sqlite",
    ) -> None:
        self._session_factory = session_factory
        self._table = table
        self._dialect = dialect

    async def upsert(
        self, entity: Mapping[str, Any], identifier: str
    ) -> Result[None, StoreError]:
        values = {name: entity.get(name) for name in _COLUMNS}
        replace = {k: v for k, v in values.items() if k not in ("pk", "sk")}

        async def write() -> None:
            stmt = (
                upsert_statement(self._dialect, self._table)
                .values(**values)
                .on_conflict_do_update(
                    index_elements=[self._table.c.pk, self._table.c.sk],
                    set_=replace,
                )
            )
            async with self._session_factory() as session:
                await session.execute(stmt)
                await session.commit()

        return await L.catching_async(
            write,
            on_error=lambda e: StoreError(f"Failed to write order {identifier}: {e}", e),
        )

    async def get(self, pk: str, sk: str | None = None) -> Result[dict[str, Any] | None, StoreError]:
        """Read back a stored item. sk defaults to pk."""

        async def read() -> dict[str, Any] | None:
            stmt = select(self._table).where(
                self._table.c.pk == pk,
                self._table.c.sk == (sk if sk is not None else pk),
            )
            async with self._session_factory() as session:
                row = (await session.execute(stmt)).one_or_none()
                return dict(row._mapping) if row is not None else None

        return await L.catching_async(
            read,
            on_error=lambda e: StoreError(f"Failed to read order {pk}: {e}", e),
        )


__all__ = ("SQLAlchemyRecordStore", "orders_table")
