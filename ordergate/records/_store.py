"""
Record store protocol + in-memory implementation.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any, Protocol

from kungfu import Result, Ok, Error

from ordergate.errors import StoreError


# ═══════════════════════════════════════════════════════════════════════════════
# Protocol
# ═══════════════════════════════════════════════════════════════════════════════


class RecordStore(Protocol):
    """Entity storage. One conditional-free write per call."""

    async def upsert(
        self, entity: Mapping[str, Any], identifier: str
    ) -> Result[None, StoreError]:
        """Insert or replace the entity. identifier is used for logging."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# In-Memory Implementation
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryRecordStore:
    """
    In-memory record store keyed by (pk, sk).

    Set `fail_with` to make every write fail with that error.
    `writes` counts successful writes.
    """

    def __init__(self, fail_with: StoreError | None = None) -> None:
        self.items: dict[tuple[str, str], dict[str, Any]] = {}
        self.writes = 0
        self.fail_with = fail_with

    async def upsert(
        self, entity: Mapping[str, Any], identifier: str
    ) -> Result[None, StoreError]:
        if self.fail_with is not None:
            return Error(self.fail_with)

        key = (entity.get("pk"), entity.get("sk"))
        if not isinstance(key[0], str) or not isinstance(key[1], str):
            return Error(StoreError(f"Entity {identifier} is missing pk/sk"))

        self.items[(key[0], key[1])] = copy.deepcopy(dict(entity))
        self.writes += 1
        return Ok(None)

    def get(self, pk: str, sk: str | None = None) -> dict[str, Any] | None:
        """Read back a stored item. sk defaults to pk."""
        return self.items.get((pk, sk if sk is not None else pk))

    def __len__(self) -> int:
        return len(self.items)


__all__ = ("RecordStore", "MemoryRecordStore")
