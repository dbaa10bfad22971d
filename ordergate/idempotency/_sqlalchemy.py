"""
SQLAlchemy integration — idempotency store on a relational table.

Usage:
    1. Declare the table (name comes from configuration):

        metadata = MetaData()
        table = idempotency_table(metadata, "orders-idempotency")

    2. Create store:

        store = SQLAlchemyStore(session_factory, table, dialect="sqlite")

    3. Use:

        gate = I.IdempotencyGate(store, I.Policy().with_ttl(seconds=30))

Times are stored as epoch seconds so expiry checks stay inside SQL
and do not depend on driver timezone handling.
"""

import json
from datetime import datetime, timedelta
from typing import Any, cast

from sqlalchemy import (
    Column,
    Float,
    MetaData,
    String,
    Table,
    Text,
    delete,
    select,
    update,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kungfu import Result, Ok, Error

from ordergate._types import Clock, utc_now
from ordergate.errors import StoreError
from ordergate.idempotency._types import IdempotencyRecord, RecordState


# ═══════════════════════════════════════════════════════════════════════════════
# Table
# ═══════════════════════════════════════════════════════════════════════════════


def idempotency_table(metadata: MetaData, name: str) -> Table:
    """
    Idempotency records table.

    Columns:
    - key: fingerprint (primary key)
    - token: owner of the current reservation
    - status: "IN_PROGRESS" | "COMPLETED"
    - value: JSON result snapshot
    - created_at / expires_at: epoch seconds
    """
    return Table(
        name,
        metadata,
        Column("key", String(255), primary_key=True),
        Column("token", String(64), nullable=False),
        Column("status", String(20), nullable=False),
        Column("value", Text, nullable=True),
        Column("created_at", Float, nullable=False),
        Column("expires_at", Float, nullable=False, index=True),
    )


def upsert_statement(dialect: str, table: Table) -> Any:
    """INSERT for the dialect, with ON CONFLICT support."""
    match dialect:
        case "sqlite":
            return sqlite.insert(table)
        case "postgresql":
            return postgresql.insert(table)
        case _:
            raise ValueError(f"Unsupported dialect for conditional writes: {dialect}")


# ═══════════════════════════════════════════════════════════════════════════════
# Store
# ═══════════════════════════════════════════════════════════════════════════════


class SQLAlchemyStore:
    """
    Idempotency store over an async SQLAlchemy session factory.

    Values must be JSON-serializable; they round-trip through a Text column.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        table: Table,
        *,
        dialect: str = "sqlite",
        clock: Clock = utc_now,
    ) -> None:
        """
        Args:
            session_factory: SQLAlchemy async session factory
            table: Table built by idempotency_table()
            dialect: "sqlite" or "postgresql"
            clock: time source for expiry
        """
        self._session_factory = session_factory
        self._table = table
        self._dialect = dialect
        self._clock = clock

    async def get(self, key: str) -> Result[IdempotencyRecord[Any] | None, StoreError]:
        """Get live record by key."""
        try:
            async with self._session_factory() as session:
                stmt = select(self._table).where(self._table.c.key == key)
                row = (await session.execute(stmt)).one_or_none()

                if row is None:
                    return Ok(None)

                if self._epoch() >= row.expires_at:
                    return Ok(None)

                return Ok(self._to_record(row))

        except Exception as e:
            return Error(StoreError(f"Failed to get: {e}", e))

    async def reserve(
        self, key: str, token: str, ttl: timedelta
    ) -> Result[bool, StoreError]:
        """
        Claim key atomically.

        INSERT ... ON CONFLICT (key) DO UPDATE ... WHERE expires_at <= now
        A live record makes the statement touch zero rows.
        """
        try:
            now = self._epoch()
            values = {
                "token": token,
                "status": RecordState.IN_PROGRESS.value,
                "value": None,
                "created_at": now,
                "expires_at": now + ttl.total_seconds(),
            }
            stmt = (
                upsert_statement(self._dialect, self._table)
                .values(key=key, **values)
                .on_conflict_do_update(
                    index_elements=[self._table.c.key],
                    set_=values,
                    where=self._table.c.expires_at <= now,
                )
            )

            async with self._session_factory() as session:
                cursor = cast(CursorResult[Any], await session.execute(stmt))
                await session.commit()
                return Ok(cursor.rowcount > 0)

        except Exception as e:
            return Error(StoreError(f"Failed to reserve: {e}", e))

    async def complete(
        self, key: str, token: str, value: Any, ttl: timedelta
    ) -> Result[None, StoreError]:
        """Mark record as completed, only while token owns it."""
        try:
            stmt = (
                update(self._table)
                .where(self._table.c.key == key, self._table.c.token == token)
                .values(
                    status=RecordState.COMPLETED.value,
                    value=json.dumps(value),
                    expires_at=self._epoch() + ttl.total_seconds(),
                )
            )

            async with self._session_factory() as session:
                cursor = cast(CursorResult[Any], await session.execute(stmt))
                await session.commit()

                if cursor.rowcount == 0:
                    return Error(StoreError(f"Reservation for key {key} is no longer held"))
                return Ok(None)

        except Exception as e:
            return Error(StoreError(f"Failed to complete: {e}", e))

    async def release(self, key: str, token: str) -> Result[bool, StoreError]:
        """Delete record, only while token owns it."""
        try:
            stmt = delete(self._table).where(
                self._table.c.key == key, self._table.c.token == token
            )

            async with self._session_factory() as session:
                cursor = cast(CursorResult[Any], await session.execute(stmt))
                await session.commit()
                return Ok(cursor.rowcount > 0)

        except Exception as e:
            return Error(StoreError(f"Failed to release: {e}", e))

    def _epoch(self) -> float:
        return self._clock().timestamp()

    def _to_record(self, row: Any) -> IdempotencyRecord[Any]:
        """Convert row to IdempotencyRecord."""
        state = RecordState(row.status)
        return IdempotencyRecord(
            key=row.key,
            token=row.token,
            state=state,
            value=json.loads(row.value) if row.value is not None else None,
            created_at=datetime.fromtimestamp(row.created_at, tz=self._clock().tzinfo),
            expires_at=datetime.fromtimestamp(row.expires_at, tz=self._clock().tzinfo),
        )


__all__ = (
    "idempotency_table",
    "upsert_statement",
    "SQLAlchemyStore",
)
