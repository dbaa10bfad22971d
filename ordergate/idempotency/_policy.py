"""
Idempotency policy — retention and conflict behavior.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import timedelta
from enum import Enum, auto


# ═══════════════════════════════════════════════════════════════════════════════
# On Pending — Conflict Resolution Strategy
# ═══════════════════════════════════════════════════════════════════════════════


class OnPending(Enum):
    """
    What to do when a request arrives while an identical one is IN_PROGRESS.

    FAIL: Report InProgress immediately. The caller answers 409 and the
          client retries after a short delay.

    WAIT: Poll the store until the in-flight request completes, then
          answer with its result. Gives up with InProgress after
          wait_timeout.
    """

    FAIL = auto()
    WAIT = auto()


# Singleton instances for convenience
FAIL = OnPending.FAIL
WAIT = OnPending.WAIT


# ═══════════════════════════════════════════════════════════════════════════════
# Policy — Full Configuration
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Policy:
    """
    Idempotency policy configuration.

    Example:
        policy = (
            Policy()
            .with_ttl(seconds=30)
            .with_pending_ttl(seconds=10)
            .with_on_pending(WAIT)
            .with_wait_timeout(seconds=5)
        )

    Note: Immutable — each method returns new Policy.
    """

    result_ttl: timedelta = timedelta(seconds=30)
    pending_ttl: timedelta = timedelta(seconds=30)
    conflict_strategy: OnPending = OnPending.FAIL
    wait_timeout: timedelta = timedelta(seconds=5)
    poll_interval: timedelta = timedelta(milliseconds=100)

    def with_ttl(
        self,
        *,
        seconds: float | None = None,
        minutes: float | None = None,
        delta: timedelta | None = None,
    ) -> Policy:
        """
        Set the retention window for completed records.

        After it elapses the same fingerprint is treated as new.

        Example:
            .with_ttl(seconds=30)
            .with_ttl(delta=timedelta(minutes=5))
        """
        return replace(self, result_ttl=_delta(delta, seconds, minutes))

    def with_pending_ttl(
        self,
        *,
        seconds: float | None = None,
        delta: timedelta | None = None,
    ) -> Policy:
        """
        Set how long an IN_PROGRESS reservation may live.

        Backstop for requests that die without completing or releasing.
        """
        return replace(self, pending_ttl=_delta(delta, seconds, None))

    def with_on_pending(self, strategy: OnPending) -> Policy:
        """
        Set conflict resolution strategy.

        Example:
            .with_on_pending(I.FAIL)   # 409 right away
            .with_on_pending(I.WAIT)   # Wait for the in-flight result
        """
        return replace(self, conflict_strategy=strategy)

    def with_wait_timeout(
        self,
        *,
        seconds: float | None = None,
        delta: timedelta | None = None,
    ) -> Policy:
        """Set how long WAIT polls before giving up."""
        return replace(self, wait_timeout=_delta(delta, seconds, None))


def _delta(
    delta: timedelta | None, seconds: float | None, minutes: float | None
) -> timedelta:
    if delta is not None:
        return delta
    total = (seconds or 0) + (minutes or 0) * 60
    if total <= 0:
        raise ValueError("duration must be positive")
    return timedelta(seconds=total)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "OnPending",
    "FAIL",
    "WAIT",
    "Policy",
)
