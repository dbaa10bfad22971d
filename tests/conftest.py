"""
Shared fixtures for ordergate tests.

- FixedClock: manually advanced time source for expiry tests
- Deterministic order ids
- In-memory stores wired into an orchestrator
- Prometheus registry and OpenTelemetry spans captured per test
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from ordergate import idempotency as I
from ordergate import records as R
from ordergate.config import Settings, reset_settings
from ordergate.faults import Faults
from ordergate.observability import (
    Observability,
    PrometheusMetrics,
    SpanTracer,
    get_logger,
)
from ordergate.pipeline import Orchestrator, Services


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 5, 1, 10, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def last_span_attribute(spans: InMemorySpanExporter, key: str) -> Any:
    finished = spans.get_finished_spans()
    assert finished, "no span finished"
    attributes = finished[-1].attributes or {}
    return attributes.get(key)


def sequential_ids() -> Callable[[], str]:
    counter = iter(range(1, 1_000_000))
    return lambda: str(uuid.UUID(int=next(counter), version=4))


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def ids() -> Callable[[], str]:
    return sequential_ids()


@pytest.fixture
def payload() -> dict[str, Any]:
    return {
        "customerId": "cust-1",
        "items": [
            {"productId": "p-1", "quantity": 2, "price": 9.99},
            {"productId": "p-2", "quantity": 1},
        ],
        "total": 19.98,
    }


@pytest.fixture
def body(payload: dict[str, Any]) -> str:
    return json.dumps(payload)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        record_store_name="orders",
        idempotency_store_name="orders-idempotency",
        database_url="memory://",
        stage="test",
    )


@pytest.fixture
def idem_store(clock: FixedClock) -> I.MemoryStore[Any]:
    return I.MemoryStore(clock=clock)


@pytest.fixture
def record_store() -> R.MemoryRecordStore:
    return R.MemoryRecordStore()


@pytest.fixture
def metrics() -> PrometheusMetrics:
    return PrometheusMetrics("Orders")


@pytest.fixture
def spans() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def tracer(spans: InMemorySpanExporter) -> SpanTracer:
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(spans))
    return SpanTracer(provider.get_tracer("ordergate.tests"))


@pytest.fixture
def observability(metrics: PrometheusMetrics, tracer: SpanTracer) -> Observability:
    return Observability(get_logger("ordergate.orders"), metrics, tracer)


@pytest.fixture
def services(
    idem_store: I.MemoryStore[Any],
    record_store: R.MemoryRecordStore,
    ids: Callable[[], str],
    clock: FixedClock,
) -> Services:
    return Services(
        gate=I.IdempotencyGate(idem_store, I.Policy()),
        records=record_store,
        faults=Faults.disabled(),
        ids=ids,
        clock=clock,
    )


@pytest.fixture
def orchestrator(services: Services, observability: Observability) -> Orchestrator:
    return Orchestrator(services, observability, stage="test")
