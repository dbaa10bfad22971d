"""
Core types for ordergate.

Re-exports from kungfu/combinators + the HTTP-like boundary types
shared by the pipeline and the wire layer.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
import json

# Re-export from kungfu
from kungfu import Result, Ok, Error, LazyCoroResult

# Re-export from combinators
from combinators import LCR

# ═══════════════════════════════════════════════════════════════════════════════
# Aliases
# ═══════════════════════════════════════════════════════════════════════════════

type Lazy[T, E] = LazyCoroResult[T, E]
"""Lazy async computation that may fail."""

type JSONObject = dict[str, Any]
"""A decoded JSON object."""

type Clock = Callable[[], datetime]
"""Source of the current time. Injected wherever expiry or timestamps matter."""


def utc_now() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(UTC)


# ═══════════════════════════════════════════════════════════════════════════════
# HTTP-like boundary
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class HttpRequest:
    """
    Transport-neutral inbound request.

    Note: body is kept exactly as received (str or bytes).
    The idempotency fingerprint is computed from these bytes.
    """

    method: str
    path: str
    body: str | bytes | None = None
    headers: Mapping[str, str] = field(default_factory=dict[str, str])


@dataclass(frozen=True, slots=True)
class HttpResponse:
    """Transport-neutral outbound response with a JSON body."""

    status_code: int
    body: str
    headers: Mapping[str, str] = field(default_factory=dict[str, str])

    def json(self) -> Any:
        return json.loads(self.body)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # Re-exports from combinators
    "LCR",
    # Aliases
    "Lazy",
    "JSONObject",
    "Clock",
    "utc_now",
    # Boundary
    "HttpRequest",
    "HttpResponse",
)
