"""
Pipeline stages.

Each stage takes the context in the state it expects and returns the
context in the next state, or an error. Stages never raise for expected
failures; the orchestrator decides what an error turns into.

    RECEIVED ──validate──▶ VALIDATED ──dedup──▶ EXECUTING ──execute──▶ PERSISTED
                                          │                                │
                                          │ Duplicate                    shape
                                          ▼                                ▼
                                        SHAPED ◀───────────────────────  SHAPED
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from combinators import lift as L
from kungfu import Result, Ok, Error

from ordergate._types import Clock, JSONObject, utc_now
from ordergate.errors import ConflictError, PipelineError, UseCaseError
from ordergate.faults import Faults
from ordergate.observability import RequestLogger
from ordergate.idempotency import (
    Duplicate,
    IdempotencyGate,
    InProgress,
    Proceed,
    fingerprint,
)
from ordergate.orders import Order, create_order, strip_internal_keys
from ordergate.orders._create import new_order_id
from ordergate.pipeline._context import PipelineContext, PipelineState
from ordergate.records import RecordStore
from ordergate.schema import CreateOrderSchema, parse_json, validate

FINGERPRINT_NAMESPACE = "create-order"


# ═══════════════════════════════════════════════════════════════════════════════
# Services
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Services:
    """Collaborators the stages call into."""

    gate: IdempotencyGate[JSONObject]
    records: RecordStore
    faults: Faults = field(default_factory=Faults.disabled)
    ids: Callable[[], str] = new_order_id
    clock: Clock = utc_now
    canonical_fingerprint: bool = False


type StageFn = Callable[
    [PipelineContext, Services], Awaitable[Result[PipelineContext, PipelineError]]
]


@dataclass(frozen=True, slots=True)
class Stage:
    name: str
    accepts: PipelineState
    run: StageFn


# ═══════════════════════════════════════════════════════════════════════════════
# RECEIVED → VALIDATED
# ═══════════════════════════════════════════════════════════════════════════════


async def validate_request(
    ctx: PipelineContext, svc: Services
) -> Result[PipelineContext, PipelineError]:
    match parse_json(ctx.body):
        case Error(err):
            return Error(err)
        case Ok(payload):
            pass

    match validate(CreateOrderSchema, payload):
        case Error(err):
            return Error(err)
        case Ok(request):
            return Ok(ctx.advance(PipelineState.VALIDATED, request=request))


# ═══════════════════════════════════════════════════════════════════════════════
# VALIDATED → DEDUP_GATE → EXECUTING | SHAPED
# ═══════════════════════════════════════════════════════════════════════════════


async def dedup(
    ctx: PipelineContext, svc: Services
) -> Result[PipelineContext, PipelineError]:
    if ctx.body is None:
        return Error(UseCaseError("Dedup reached without a request body"))

    key = fingerprint(
        ctx.body,
        canonical=svc.canonical_fingerprint,
        namespace=FINGERPRINT_NAMESPACE,
    )
    gated = ctx.advance(
        PipelineState.DEDUP_GATE, fingerprint=key, log=ctx.log.bind(fingerprint=key)
    )

    match await svc.gate.begin(key):
        case Error(err):
            return Error(err)
        case Ok(Proceed() as claim):
            return Ok(gated.advance(PipelineState.EXECUTING, claim=claim))
        case Ok(Duplicate(value=snapshot)):
            gated.log.info("returning_stored_result")
            return Ok(
                gated.advance(PipelineState.SHAPED, public=snapshot, duplicate=True)
            )
        case Ok(InProgress()):
            return Error(ConflictError(key))
        case Ok(other):
            return Error(UseCaseError(f"Unknown gate decision: {other!r}"))


# ═══════════════════════════════════════════════════════════════════════════════
# EXECUTING → PERSISTED
# ═══════════════════════════════════════════════════════════════════════════════


async def _attempt(
    request: CreateOrderSchema, ctx: PipelineContext, svc: Services
) -> Result[Order, PipelineError]:
    match await svc.faults.inject():
        case Error(err):
            return Error(err)
        case Ok(_):
            pass

    return await create_order(
        request,
        store=svc.records,
        ids=svc.ids,
        clock=svc.clock,
        log=ctx.log,
    )


async def execute(
    ctx: PipelineContext, svc: Services
) -> Result[PipelineContext, PipelineError]:
    """
    Fault hooks, then the use case.

    The reservation is settled here on every path: complete() with the
    public snapshot on success, release() on failure or cancellation.
    Once the order is stored the request runs to the end, even when the
    deadline fires while the result is being recorded.
    """
    claim, request = ctx.claim, ctx.request
    if claim is None or request is None:
        return Error(UseCaseError("Execute reached without a reservation"))

    try:
        caught = await L.catching_async(
            lambda: _attempt(request, ctx, svc),
            on_error=lambda e: UseCaseError(f"Unexpected failure: {e}", e),
        )
    except asyncio.CancelledError:
        await asyncio.shield(_release(ctx, svc, claim))
        raise

    match caught:
        case Ok(Ok(order)):
            log = ctx.log.bind(order_id=order.id)
            item = order.to_item()
            await _complete(log, svc, claim, strip_internal_keys(item))
            return Ok(
                ctx.advance(PipelineState.PERSISTED, order=order, item=item, log=log)
            )
        case Ok(Error(err)) | Error(err):
            await _release(ctx, svc, claim)
            return Error(err)


async def _complete(
    log: RequestLogger, svc: Services, claim: Proceed, snapshot: JSONObject
) -> None:
    completing = asyncio.ensure_future(svc.gate.complete(claim, snapshot))
    try:
        result = await asyncio.shield(completing)
    except asyncio.CancelledError:
        # The order is stored: finish recording it instead of abandoning
        # the reservation in IN_PROGRESS.
        log.warning("deadline_reached_after_persist")
        result = await completing

    match result:
        case Error(err):
            # Order is stored; the reservation runs out on its own.
            log.error("result_not_recorded", error=err.message)
        case Ok(_):
            pass


async def _release(ctx: PipelineContext, svc: Services, claim: Proceed) -> None:
    match await svc.gate.release(claim):
        case Error(err):
            ctx.log.error("reservation_not_released", error=err.message)
        case Ok(_):
            pass


# ═══════════════════════════════════════════════════════════════════════════════
# PERSISTED → SHAPED
# ═══════════════════════════════════════════════════════════════════════════════


async def shape(
    ctx: PipelineContext, svc: Services
) -> Result[PipelineContext, PipelineError]:
    if ctx.item is None:
        return Error(UseCaseError("Shape reached without a stored order"))
    return Ok(ctx.advance(PipelineState.SHAPED, public=strip_internal_keys(ctx.item)))


# ═══════════════════════════════════════════════════════════════════════════════
# Order
# ═══════════════════════════════════════════════════════════════════════════════

STAGES: tuple[Stage, ...] = (
    Stage("validate", PipelineState.RECEIVED, validate_request),
    Stage("dedup", PipelineState.VALIDATED, dedup),
    Stage("execute", PipelineState.EXECUTING, execute),
    Stage("shape", PipelineState.PERSISTED, shape),
)


__all__ = (
    "FINGERPRINT_NAMESPACE",
    "Services",
    "StageFn",
    "Stage",
    "STAGES",
    "validate_request",
    "dedup",
    "execute",
    "shape",
)
