"""
Error taxonomy — every failure the create-order pipeline can produce.

Errors are plain frozen values carried on the Error side of a
kungfu.Result. Nothing here is raised across layer boundaries; driver
exceptions are captured as the `cause` of a StoreError / UseCaseError.

    ValidationError     malformed inbound payload or constructed entity → 400
    ConflictError       identical request already in flight             → 409
    StoreError          record or idempotency store failed              → 500
    FaultInjectedError  artificial failure from the fault hooks         → 500
    UseCaseError        unexpected failure inside the use case          → 500
    DeadlineExceeded    overall request deadline fired                  → 504
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ValidationError:
    """
    Structural validation failure.

    path: JSON path of the offending value ("" for the payload itself),
    e.g. "items[0].quantity".
    """

    path: str
    reason: str

    @property
    def message(self) -> str:
        if not self.path:
            return self.reason
        return f"{self.path}: {self.reason}"


@dataclass(frozen=True, slots=True)
class ConflictError:
    """A request with the same fingerprint is IN_PROGRESS."""

    fingerprint: str
    retry_after_seconds: int = 1

    @property
    def message(self) -> str:
        return "An identical request is already being processed"


@dataclass(frozen=True)
class StoreError:
    """Storage operation error."""

    message: str
    cause: Exception | None = None


@dataclass(frozen=True, slots=True)
class FaultInjectedError:
    """Raised on purpose by the fault hooks to exercise the failure path."""

    message: str = "Random failure occurred"


@dataclass(frozen=True)
class UseCaseError:
    """Unexpected exception escaping the use case."""

    message: str
    cause: Exception | None = None


@dataclass(frozen=True, slots=True)
class DeadlineExceeded:
    """The caller-imposed deadline elapsed before a response was ready."""

    seconds: float

    @property
    def message(self) -> str:
        return f"Request did not complete within {self.seconds:g}s"


type PipelineError = (
    ValidationError
    | ConflictError
    | StoreError
    | FaultInjectedError
    | UseCaseError
    | DeadlineExceeded
)


def error_kind(error: PipelineError) -> str:
    """Stable name of the error kind, used in logs."""
    return type(error).__name__


__all__ = (
    "ValidationError",
    "ConflictError",
    "StoreError",
    "FaultInjectedError",
    "UseCaseError",
    "DeadlineExceeded",
    "PipelineError",
    "error_kind",
)
