"""
Fault hooks — artificial latency and random failure for resilience drills.

    faults = Faults.from_settings(settings)
    match await faults.inject():
        case Ok(None):
            ...  # carry on
        case Error(FaultInjectedError()):
            ...  # take the failure path

Both hooks are off unless enabled in configuration. The random source is
injectable so the failure rate can be checked with a fixed seed.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from kungfu import Result, Ok, Error

from ordergate.errors import FaultInjectedError

if TYPE_CHECKING:
    from ordergate.config import Settings


DEFAULT_LATENCY_SECONDS = 2.0
DEFAULT_ERROR_PROBABILITY = 0.8


@dataclass(frozen=True, slots=True)
class Faults:
    latency_enabled: bool = False
    latency_seconds: float = DEFAULT_LATENCY_SECONDS
    error_enabled: bool = False
    error_probability: float = DEFAULT_ERROR_PROBABILITY
    rng: random.Random = field(default_factory=random.Random)
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    def __post_init__(self) -> None:
        if not 0.0 <= self.error_probability <= 1.0:
            raise ValueError("error_probability must be within [0, 1]")
        if self.latency_seconds < 0:
            raise ValueError("latency_seconds must be >= 0")

    @property
    def enabled(self) -> bool:
        return self.latency_enabled or self.error_enabled

    def roll(self) -> bool:
        """True when this call should fail."""
        return self.rng.random() < self.error_probability

    async def inject(self) -> Result[None, FaultInjectedError]:
        if self.latency_enabled:
            await self.sleep(self.latency_seconds)

        if self.error_enabled and self.roll():
            return Error(FaultInjectedError())

        return Ok(None)

    @classmethod
    def disabled(cls) -> Faults:
        return cls()

    @classmethod
    def from_settings(cls, settings: Settings) -> Faults:
        return cls(
            latency_enabled=settings.fault_latency_enabled,
            latency_seconds=settings.fault_latency_seconds,
            error_enabled=settings.fault_error_enabled,
            error_probability=settings.fault_error_probability,
            rng=random.Random(settings.fault_seed),
        )


__all__ = (
    "Faults",
    "DEFAULT_LATENCY_SECONDS",
    "DEFAULT_ERROR_PROBABILITY",
)
