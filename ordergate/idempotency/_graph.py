"""
Dedup gate graph — the begin() decision as nodnod nodes.

Reserve first, read only when the reservation is lost. Two identical
requests can never both observe "absent": the store's conditional write
picks exactly one winner.

Architecture:
    GateSpec (injected)
         │
         ▼
    SpecNode
         │
         ▼
    ReserveNode  (atomic conditional write)
         │
         ├───────────────────┬──────────────────────────┐
         │                   │                          │
         ▼                   ▼                          ▼
    ReservedNode      ReserveErrorNode          ExistingRecordNode (get)
         │                   │                          │
         │                   │        ┌─────────────────┼──────────────────┐
         │                   │        ▼                 ▼                  ▼
         │                   │  CompletedRecordNode  PendingRecordNode  FetchErrorNode
         │                   │        │                 │                  │
         └───────────────────┴────────┴────────┬────────┴──────────────────┘
                                               ▼
                                 GateOutcome (@polymorphic)
                                               │
                                               ▼
                                         DecisionNode

Note: no 'from __future__ import annotations' here. nodnod reads the
type hints at runtime to resolve dependencies.
"""

import asyncio
from dataclasses import dataclass
from typing import Any

from nodnod import NodeError, polymorphic, case

from kungfu import Result, Ok, Error

from ordergate import graph as G
from ordergate.errors import StoreError
from ordergate.idempotency._types import (
    IdempotencyRecord,
    Proceed,
    Duplicate,
    InProgress,
    GateDecision,
)
from ordergate.idempotency._store import StoreAny
from ordergate.idempotency._policy import Policy, OnPending


# ═══════════════════════════════════════════════════════════════════════════════
# Input — Spec (injected)
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class GateSpec:
    """Everything begin() needs for one fingerprint."""

    key: str
    token: str
    store: StoreAny
    policy: Policy


# ═══════════════════════════════════════════════════════════════════════════════
# Entry Node
# ═══════════════════════════════════════════════════════════════════════════════


@G.node
class SpecNode:
    """Wraps GateSpec for graph."""

    def __init__(self, spec: GateSpec) -> None:
        self.spec = spec

    @classmethod
    def __compose__(cls, spec: GateSpec) -> "SpecNode":
        return cls(spec)


# ═══════════════════════════════════════════════════════════════════════════════
# Reservation
# ═══════════════════════════════════════════════════════════════════════════════


@G.node
class ReserveNode:
    """Tries to claim the key with a single conditional write."""

    def __init__(
        self,
        spec: GateSpec,
        reserved: bool,
        store_error: StoreError | None = None,
    ) -> None:
        self.spec = spec
        self.reserved = reserved
        self.store_error = store_error

    @classmethod
    async def __compose__(cls, spec_node: SpecNode) -> "ReserveNode":
        spec = spec_node.spec
        result = await spec.store.reserve(
            spec.key, spec.token, spec.policy.pending_ttl
        )

        match result:
            case Ok(reserved):
                return cls(spec, reserved)
            case Error(err):
                return cls(spec, False, store_error=err)


@G.node
class ReservedNode:
    """Validates: the key is ours."""

    def __init__(self, spec: GateSpec) -> None:
        self.spec = spec

    @classmethod
    def __compose__(cls, reserve: ReserveNode) -> "ReservedNode":
        if not reserve.reserved:
            raise NodeError("Not reserved")
        return cls(reserve.spec)


@G.node
class ReserveErrorNode:
    """Validates: the conditional write itself failed."""

    def __init__(self, error: StoreError, spec: GateSpec) -> None:
        self.error = error
        self.spec = spec

    @classmethod
    def __compose__(cls, reserve: ReserveNode) -> "ReserveErrorNode":
        if reserve.store_error is None:
            raise NodeError("No store error")
        return cls(reserve.store_error, reserve.spec)


# ═══════════════════════════════════════════════════════════════════════════════
# Lost Reservation — inspect the record that won
# ═══════════════════════════════════════════════════════════════════════════════


@G.node
class ExistingRecordNode:
    """Validates: reservation lost. Reads the live record."""

    def __init__(
        self,
        record: IdempotencyRecord[Any] | None,
        spec: GateSpec,
        store_error: StoreError | None = None,
    ) -> None:
        self.record = record
        self.spec = spec
        self.store_error = store_error

    @classmethod
    async def __compose__(cls, reserve: ReserveNode) -> "ExistingRecordNode":
        if reserve.reserved or reserve.store_error is not None:
            raise NodeError("Reservation not lost")

        spec = reserve.spec
        result = await spec.store.get(spec.key)

        match result:
            case Ok(record):
                return cls(record, spec)
            case Error(err):
                return cls(None, spec, store_error=err)


@G.node
class CompletedRecordNode:
    """Validates: live record is COMPLETED."""

    def __init__(self, record: IdempotencyRecord[Any], spec: GateSpec) -> None:
        self.record = record
        self.spec = spec

    @classmethod
    def __compose__(cls, existing: ExistingRecordNode) -> "CompletedRecordNode":
        record = existing.record
        if record is None:
            raise NodeError("No record")
        if not record.is_completed:
            raise NodeError("Not completed")
        return cls(record, existing.spec)


@G.node
class PendingRecordNode:
    """
    Validates: live record is IN_PROGRESS, or it vanished between the
    lost reservation and the read (released or expired meanwhile).

    Either way another request owned the key a moment ago.
    """

    def __init__(self, spec: GateSpec) -> None:
        self.spec = spec

    @classmethod
    def __compose__(cls, existing: ExistingRecordNode) -> "PendingRecordNode":
        if existing.store_error is not None:
            raise NodeError("Store error")
        record = existing.record
        if record is not None and not record.is_in_progress:
            raise NodeError("Not in progress")
        return cls(existing.spec)


@G.node
class FetchErrorNode:
    """Validates: reading the existing record failed."""

    def __init__(self, error: StoreError, spec: GateSpec) -> None:
        self.error = error
        self.spec = spec

    @classmethod
    def __compose__(cls, existing: ExistingRecordNode) -> "FetchErrorNode":
        if existing.store_error is None:
            raise NodeError("No store error")
        return cls(existing.store_error, existing.spec)


# ═══════════════════════════════════════════════════════════════════════════════
# Polymorphic Outcome — Each case uses validated state nodes
# ═══════════════════════════════════════════════════════════════════════════════


type Outcome = GateDecision | StoreError


@polymorphic[Outcome]
class GateOutcome:
    """
    Polymorphic router — each @case depends on a validated state node.

    Note: state checks live in the nodes, cases only build the decision.
    """

    @case
    def reserve_failed(cls, node: ReserveErrorNode) -> Outcome:
        return node.error

    @case
    def proceed(cls, node: ReservedNode) -> Outcome:
        return Proceed(node.spec.key, node.spec.token)

    @case
    def duplicate(cls, node: CompletedRecordNode) -> Outcome:
        return Duplicate(node.spec.key, node.record.value)

    @case
    def fetch_failed(cls, node: FetchErrorNode) -> Outcome:
        return node.error

    @case
    def in_progress(cls, node: PendingRecordNode) -> Outcome:
        """FAIL policy: report the conflict right away."""
        if node.spec.policy.conflict_strategy != OnPending.FAIL:
            raise NodeError("Policy not FAIL")
        return InProgress(node.spec.key)

    @case
    async def wait_for_result(cls, node: PendingRecordNode) -> Outcome:
        """WAIT policy: poll until the in-flight request completes."""
        spec = node.spec
        if spec.policy.conflict_strategy != OnPending.WAIT:
            raise NodeError("Policy not WAIT")

        timeout = spec.policy.wait_timeout.total_seconds()
        poll_interval = spec.policy.poll_interval.total_seconds()
        elapsed = 0.0

        while elapsed < timeout:
            await asyncio.sleep(poll_interval)
            elapsed += poll_interval

            match await spec.store.get(spec.key):
                case Error(err):
                    return err
                case Ok(record) if record is not None and record.is_completed:
                    return Duplicate(spec.key, record.value)
                case Ok(None):
                    # In-flight request failed and released the key
                    return InProgress(spec.key)
                case Ok(_):
                    pass

        return InProgress(spec.key)


# ═══════════════════════════════════════════════════════════════════════════════
# Final Node
# ═══════════════════════════════════════════════════════════════════════════════


@G.node
class DecisionNode:
    """Converts Outcome to typed Result."""

    def __init__(self, outcome: Outcome) -> None:
        self.outcome = outcome

    @classmethod
    def __compose__(cls, outcome: GateOutcome) -> "DecisionNode":
        return cls(outcome.value)

    def to_result(self) -> Result[GateDecision, StoreError]:
        match self.outcome:
            case StoreError() as err:
                return Error(err)
            case decision:
                return Ok(decision)


# ═══════════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════════


async def run_gate(spec: GateSpec) -> Result[GateDecision, StoreError]:
    """Decide Proceed / Duplicate / InProgress for one fingerprint."""
    node = await G.run(DecisionNode).inject(spec)
    return node.to_result()


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "GateSpec",
    "Outcome",
    "SpecNode",
    "ReserveNode",
    "ReservedNode",
    "ReserveErrorNode",
    "ExistingRecordNode",
    "CompletedRecordNode",
    "PendingRecordNode",
    "FetchErrorNode",
    "GateOutcome",
    "DecisionNode",
    "run_gate",
)
