"""
Idempotency gate — begin / complete / release over a Store.

    gate = I.IdempotencyGate(I.MemoryStore(), I.Policy().with_ttl(seconds=30))

    match await gate.begin(key):
        case Ok(I.Proceed() as claim):
            ...  # run the use case, then gate.complete(claim, v) or gate.release(claim)
        case Ok(I.Duplicate(value=previous)):
            ...
        case Ok(I.InProgress()):
            ...
        case Error(store_error):
            ...

Note: whoever receives Proceed owns the reservation and must end it
with complete() or release() on every path, failures included. The
claim's token keeps a late request from settling a reservation that
expired and was taken over by another one.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from typing import Generic, TypeVar

from kungfu import Result

from ordergate.errors import StoreError
from ordergate.idempotency._types import GateDecision, Proceed
from ordergate.idempotency._graph import GateSpec, run_gate
from ordergate.idempotency._store import Store
from ordergate.idempotency._policy import Policy

T = TypeVar("T")


def new_token() -> str:
    return uuid.uuid4().hex


class IdempotencyGate(Generic[T]):
    """Dedup gate for one store and policy."""

    def __init__(
        self,
        store: Store[T],
        policy: Policy | None = None,
        *,
        tokens: Callable[[], str] = new_token,
    ) -> None:
        self._store = store
        self._policy = policy if policy is not None else Policy()
        self._tokens = tokens

    @property
    def policy(self) -> Policy:
        return self._policy

    async def begin(self, key: str) -> Result[GateDecision, StoreError]:
        """Reserve key, or report the prior result / in-flight request."""
        spec = GateSpec(
            key=key, token=self._tokens(), store=self._store, policy=self._policy
        )
        return await run_gate(spec)

    async def complete(self, claim: Proceed, value: T) -> Result[None, StoreError]:
        """Store the result snapshot for the retention window."""
        return await self._store.complete(
            claim.key, claim.token, value, self._policy.result_ttl
        )

    async def release(self, claim: Proceed) -> Result[bool, StoreError]:
        """Give the key back so a retry is not blocked."""
        return await self._store.release(claim.key, claim.token)


__all__ = ("IdempotencyGate", "new_token")
