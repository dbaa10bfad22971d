"""Tests for ``ordergate.faults`` — latency and random failure hooks."""

from __future__ import annotations

import random

import pytest
from kungfu import Ok, Error

from ordergate.errors import FaultInjectedError
from ordergate.faults import Faults


class _Sleeps:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class TestFaults:
    async def test_disabled_by_default(self):
        sleep = _Sleeps()
        faults = Faults(sleep=sleep)
        assert not faults.enabled
        assert await faults.inject() == Ok(None)
        assert sleep.calls == []

    async def test_latency(self):
        sleep = _Sleeps()
        faults = Faults(latency_enabled=True, sleep=sleep)
        assert await faults.inject() == Ok(None)
        assert sleep.calls == [2.0]

    async def test_always_fail(self):
        faults = Faults(error_enabled=True, error_probability=1.0)
        assert await faults.inject() == Error(FaultInjectedError())
        assert FaultInjectedError().message == "Random failure occurred"

    async def test_never_fail(self):
        faults = Faults(error_enabled=True, error_probability=0.0)
        assert await faults.inject() == Ok(None)

    async def test_failure_rate_with_seed(self):
        faults = Faults(error_enabled=True, rng=random.Random(1234))
        trials = 1000
        failures = 0
        for _ in range(trials):
            if isinstance(await faults.inject(), Error):
                failures += 1
        assert 0.75 <= failures / trials <= 0.85

    def test_same_seed_same_sequence(self):
        a = Faults(error_enabled=True, rng=random.Random(7))
        b = Faults(error_enabled=True, rng=random.Random(7))
        assert [a.roll() for _ in range(50)] == [b.roll() for _ in range(50)]

    @pytest.mark.parametrize("p", [-0.1, 1.5])
    def test_probability_bounds(self, p):
        with pytest.raises(ValueError):
            Faults(error_probability=p)

    def test_from_settings(self, settings):
        settings = settings.model_copy(
            update={
                "fault_error_enabled": True,
                "fault_latency_enabled": True,
                "fault_latency_seconds": 0.5,
                "fault_error_probability": 0.25,
                "fault_seed": 3,
            }
        )
        faults = Faults.from_settings(settings)
        assert faults.enabled
        assert faults.latency_seconds == 0.5
        assert faults.error_probability == 0.25
        expected = random.Random(3)
        assert [faults.rng.random() for _ in range(3)] == [expected.random() for _ in range(3)]
