"""
Idempotency store — typed storage protocol.

Store[T] — stores records with typed value T.
All methods return Result for explicit error handling.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol, Any, Generic, TypeVar

from kungfu import Result, Ok, Error

from ordergate._types import Clock, utc_now
from ordergate.errors import StoreError
from ordergate.idempotency._types import (
    RecordState,
    IdempotencyRecord,
)


T = TypeVar("T")


# ═══════════════════════════════════════════════════════════════════════════════
# Store Protocol — Typed, Result-based
# ═══════════════════════════════════════════════════════════════════════════════


class Store(Protocol[T]):
    """
    Typed idempotency store protocol.

    Note: reserve() is the only serialization point between concurrent
    requests. It must be a single conditional write (compare-and-swap),
    never a read followed by a write.
    """

    async def get(self, key: str) -> Result[IdempotencyRecord[T] | None, StoreError]:
        """Get live record. Returns Ok(None) if absent or expired."""
        ...

    async def reserve(
        self, key: str, token: str, ttl: timedelta
    ) -> Result[bool, StoreError]:
        """
        Atomically write an IN_PROGRESS record owned by token.

        Returns Ok(True) if the key was absent or expired and is now ours,
        Ok(False) if a live record already exists.
        """
        ...

    async def complete(
        self, key: str, token: str, value: T, ttl: timedelta
    ) -> Result[None, StoreError]:
        """
        IN_PROGRESS → COMPLETED with a result snapshot, expiry = now + ttl.

        Fails if the record is gone or now belongs to another token.
        """
        ...

    async def release(self, key: str, token: str) -> Result[bool, StoreError]:
        """Drop the record if token still owns it. Returns Ok(True) if dropped."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Memory Store — For Testing
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class _StoredRecord(Generic[T]):
    """Internal mutable record for MemoryStore."""

    key: str
    token: str
    state: RecordState
    value: T | None
    created_at: datetime
    expires_at: datetime

    def to_record(self) -> IdempotencyRecord[T]:
        return IdempotencyRecord(
            key=self.key,
            token=self.token,
            state=self.state,
            value=self.value,
            created_at=self.created_at,
            expires_at=self.expires_at,
        )


class MemoryStore(Generic[T]):
    """
    In-memory idempotency store.

    Note: single process only. The asyncio lock makes reserve() atomic
    for coroutines sharing one event loop.
    """

    def __init__(self, clock: Clock = utc_now) -> None:
        self._records: dict[str, _StoredRecord[T]] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    def __len__(self) -> int:
        return len(self._records)

    async def get(self, key: str) -> Result[IdempotencyRecord[T] | None, StoreError]:
        async with self._lock:
            record = self._records.get(key)
            if record is None:
                return Ok(None)

            if self._clock() >= record.expires_at:
                del self._records[key]
                return Ok(None)

            return Ok(record.to_record())

    async def reserve(
        self, key: str, token: str, ttl: timedelta
    ) -> Result[bool, StoreError]:
        async with self._lock:
            now = self._clock()
            existing = self._records.get(key)
            if existing is not None and now < existing.expires_at:
                return Ok(False)

            self._records[key] = _StoredRecord(
                key=key,
                token=token,
                state=RecordState.IN_PROGRESS,
                value=None,
                created_at=now,
                expires_at=now + ttl,
            )
            return Ok(True)

    async def complete(
        self, key: str, token: str, value: T, ttl: timedelta
    ) -> Result[None, StoreError]:
        async with self._lock:
            existing = self._records.get(key)
            if existing is None or existing.token != token:
                return Error(StoreError(f"Reservation for key {key} is no longer held"))

            existing.state = RecordState.COMPLETED
            existing.value = value
            existing.expires_at = self._clock() + ttl
            return Ok(None)

    async def release(self, key: str, token: str) -> Result[bool, StoreError]:
        async with self._lock:
            existing = self._records.get(key)
            if existing is not None and existing.token == token:
                del self._records[key]
                return Ok(True)
            return Ok(False)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

# Type alias for Store with Any value type
type StoreAny = Store[Any]


__all__ = (
    "Store",
    "StoreAny",
    "MemoryStore",
)
