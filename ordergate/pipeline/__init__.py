"""
Pipeline — the create-order request as a sequence of stages.

    RECEIVED → VALIDATED → DEDUP_GATE → EXECUTING → PERSISTED → SHAPED → RESPONDED
                                │
                                └── Duplicate ──────────────────▶ SHAPED
    any stage ── error ──▶ ERROR

    services = P.Services(gate=I.IdempotencyGate(I.MemoryStore()), records=R.MemoryRecordStore())
    orchestrator = P.Orchestrator(services, Observability.from_settings(settings))
    response = await orchestrator.process(body)
"""

from ordergate.pipeline._context import PipelineState, PipelineContext
from ordergate.pipeline._stages import (
    FINGERPRINT_NAMESPACE,
    Services,
    Stage,
    StageFn,
    STAGES,
    validate_request,
    dedup,
    execute,
    shape,
)
from ordergate.pipeline._responses import (
    INTERNAL_ERROR_MESSAGE,
    ErrorDetail,
    ErrorResponse,
    response_headers,
    ok_response,
    to_http,
)
from ordergate.pipeline._orchestrator import Orchestrator

__all__ = (
    # State
    "PipelineState",
    "PipelineContext",
    # Stages
    "FINGERPRINT_NAMESPACE",
    "Services",
    "Stage",
    "StageFn",
    "STAGES",
    "validate_request",
    "dedup",
    "execute",
    "shape",
    # Responses
    "INTERNAL_ERROR_MESSAGE",
    "ErrorDetail",
    "ErrorResponse",
    "response_headers",
    "ok_response",
    "to_http",
    # Orchestrator
    "Orchestrator",
)
