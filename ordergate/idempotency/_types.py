"""
Idempotency types — records and gate decisions.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


# ═══════════════════════════════════════════════════════════════════════════════
# Record State — Reservation Lifecycle
# ═══════════════════════════════════════════════════════════════════════════════


class RecordState(Enum):
    """
    State of an idempotency record.

    Lifecycle:
        IN_PROGRESS → COMPLETED (success, kept for the retention window)
                    → (released on failure)
                    → (expired)
    """

    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


# ═══════════════════════════════════════════════════════════════════════════════
# Idempotency Record — Stored State
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class IdempotencyRecord[T]:
    """
    A stored idempotency record.

    Note: value is only set for COMPLETED records.
    token identifies the request holding the reservation; complete()
    and release() only act on a record whose token still matches.
    expires_at applies to both states. For IN_PROGRESS it bounds how long
    a crashed or timed-out request can hold the key.
    """

    key: str
    token: str
    state: RecordState
    value: T | None
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    @property
    def is_in_progress(self) -> bool:
        return self.state == RecordState.IN_PROGRESS

    @property
    def is_completed(self) -> bool:
        return self.state == RecordState.COMPLETED


# ═══════════════════════════════════════════════════════════════════════════════
# Gate Decisions
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Proceed:
    """
    The key was reserved for this request. Run the use case.

    Pass it back to complete() or release(): the token proves ownership.
    """

    key: str
    token: str


@dataclass(frozen=True, slots=True)
class Duplicate[T]:
    """The key already completed inside the retention window."""

    key: str
    value: T


@dataclass(frozen=True, slots=True)
class InProgress:
    """Another request holds the key. Caller should retry later."""

    key: str


type GateDecision = Proceed | Duplicate[Any] | InProgress


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "RecordState",
    "IdempotencyRecord",
    "Proceed",
    "Duplicate",
    "InProgress",
    "GateDecision",
)
