"""
Pipeline context — immutable state threaded through the stages.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

from ordergate._types import HttpResponse, JSONObject
from ordergate.errors import PipelineError
from ordergate.idempotency import Proceed
from ordergate.observability import RequestLogger
from ordergate.orders import Order
from ordergate.schema import CreateOrderSchema


class PipelineState(StrEnum):
    RECEIVED = "RECEIVED"
    VALIDATED = "VALIDATED"
    DEDUP_GATE = "DEDUP_GATE"
    EXECUTING = "EXECUTING"
    PERSISTED = "PERSISTED"
    SHAPED = "SHAPED"
    RESPONDED = "RESPONDED"
    ERROR = "ERROR"


@dataclass(frozen=True, slots=True)
class PipelineContext:
    """
    One request's progress.

    Fields fill in as the state advances: request after VALIDATED,
    fingerprint after DEDUP_GATE, claim once EXECUTING, order/item
    after PERSISTED, public after SHAPED, response once RESPONDED or ERROR.
    """

    body: str | bytes | None
    log: RequestLogger = field(compare=False, repr=False)
    state: PipelineState = PipelineState.RECEIVED
    request: CreateOrderSchema | None = None
    fingerprint: str | None = None
    claim: Proceed | None = None
    order: Order | None = None
    item: JSONObject | None = None
    public: JSONObject | None = None
    duplicate: bool = False
    error: PipelineError | None = None
    response: HttpResponse | None = None

    def advance(self, state: PipelineState, **changes: Any) -> PipelineContext:
        return replace(self, state=state, **changes)

    @property
    def order_id(self) -> str | None:
        return self.order.id if self.order is not None else None


__all__ = ("PipelineState", "PipelineContext")
