"""
Idempotency — dedup gate for repeated submissions of the same request.

    from ordergate import idempotency as I

    key = I.fingerprint(body, namespace="create-order")
    gate = I.IdempotencyGate(
        I.MemoryStore(),
        I.Policy().with_ttl(seconds=30),
    )

    match await gate.begin(key):
        case Ok(I.Proceed() as claim):
            ...  # execute, then gate.complete(claim, result) / gate.release(claim)
        case Ok(I.Duplicate(value=previous)):
            ...  # answer with previous
        case Ok(I.InProgress()):
            ...  # identical request in flight
        case Error(err):
            ...  # store failure

Architecture — reservation first, polymorphic routes:

    GateSpec
       │
       ▼
    SpecNode → ReserveNode (conditional write)
                   │
       ┌───────────┼────────────────────┐
       │           │                    │
       ▼           ▼                    ▼
    Reserved   ReserveError     ExistingRecordNode
       │           │           Completed / Pending / FetchError
       └───────────┴─────────┬──────────┘
                             ▼
                  GateOutcome (@polymorphic)
                             │
                             ▼
                        DecisionNode
"""

from ordergate.idempotency._types import (
    RecordState,
    IdempotencyRecord,
    Proceed,
    Duplicate,
    InProgress,
    GateDecision,
)
from ordergate.idempotency._store import (
    Store,
    StoreAny,
    MemoryStore,
)
from ordergate.idempotency._policy import (
    Policy,
    OnPending,
    FAIL,
    WAIT,
)
from ordergate.idempotency._fingerprint import fingerprint
from ordergate.idempotency._graph import (
    GateSpec,
    run_gate,
    Outcome,
    SpecNode,
    ReserveNode,
    ReservedNode,
    ReserveErrorNode,
    ExistingRecordNode,
    CompletedRecordNode,
    PendingRecordNode,
    FetchErrorNode,
    GateOutcome,
    DecisionNode,
)
from ordergate.idempotency._gate import IdempotencyGate, new_token
from ordergate.idempotency._sqlalchemy import (
    SQLAlchemyStore,
    idempotency_table,
    upsert_statement,
)

__all__ = (
    # Types
    "RecordState",
    "IdempotencyRecord",
    "Proceed",
    "Duplicate",
    "InProgress",
    "GateDecision",
    # Store
    "Store",
    "StoreAny",
    "MemoryStore",
    "SQLAlchemyStore",
    "idempotency_table",
    "upsert_statement",
    # Policy
    "Policy",
    "OnPending",
    "FAIL",
    "WAIT",
    # Key
    "fingerprint",
    # Graph
    "GateSpec",
    "run_gate",
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
    # Gate
    "IdempotencyGate",
    "new_token",
)
