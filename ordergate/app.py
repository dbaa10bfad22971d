"""
Composition root — settings in, running service out.

    app = create_app()                       # FastAPI, uvicorn-ready
    runtime = build_runtime(get_settings())  # for other boundaries

Stores follow database_url: any SQLAlchemy async URL gets the SQL
stores (tables named by record_store_name / idempotency_store_name);
"memory://" keeps everything in process.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
import json

import fastapi
from prometheus_client import CONTENT_TYPE_LATEST
from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from ordergate import idempotency as I
from ordergate import records as R
from ordergate import wire as W
from ordergate._types import Clock, HttpRequest, HttpResponse, JSONObject, utc_now
from ordergate.config import Settings, get_settings
from ordergate.faults import Faults
from ordergate.observability import Observability, PrometheusMetrics
from ordergate.orders._create import new_order_id
from ordergate.pipeline import Orchestrator, Services, response_headers
from ordergate.wire.contrib import fastapi as wire_fastapi

MEMORY_URL = "memory://"
CREATE_ORDER_PATH = "/v1/orders"
HEALTH_PATH = "/health"
METRICS_PATH = "/metrics"


@dataclass(slots=True)
class Runtime:
    settings: Settings
    orchestrator: Orchestrator
    engine: AsyncEngine | None = None
    metadata: MetaData | None = None

    async def start(self) -> None:
        """Create tables when backed by SQL."""
        if self.engine is not None and self.metadata is not None:
            async with self.engine.begin() as conn:
                await conn.run_sync(self.metadata.create_all)

    async def stop(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()


def build_policy(settings: Settings) -> I.Policy:
    ttl = settings.idempotency_ttl_seconds
    return I.Policy().with_ttl(seconds=ttl).with_pending_ttl(seconds=ttl)


def build_runtime(
    settings: Settings,
    *,
    observability: Observability | None = None,
    faults: Faults | None = None,
    ids: Callable[[], str] = new_order_id,
    clock: Clock = utc_now,
) -> Runtime:
    engine: AsyncEngine | None = None
    metadata: MetaData | None = None
    store: I.Store[JSONObject]
    records: R.RecordStore

    if settings.database_url.startswith(MEMORY_URL):
        store = I.MemoryStore(clock=clock)
        records = R.MemoryRecordStore()
    else:
        engine = create_async_engine(settings.database_url)
        session_factory = async_sessionmaker(engine, expire_on_commit=False)
        metadata = MetaData()
        dialect = engine.dialect.name
        store = I.SQLAlchemyStore(
            session_factory,
            I.idempotency_table(metadata, settings.idempotency_store_name),
            dialect=dialect,
            clock=clock,
        )
        records = R.SQLAlchemyRecordStore(
            session_factory,
            R.orders_table(metadata, settings.record_store_name),
            dialect=dialect,
        )

    services = Services(
        gate=I.IdempotencyGate(store, build_policy(settings)),
        records=records,
        faults=faults if faults is not None else Faults.from_settings(settings),
        ids=ids,
        clock=clock,
        canonical_fingerprint=settings.idempotency_canonical,
    )
    orchestrator = Orchestrator(
        services,
        observability if observability is not None else Observability.from_settings(settings),
        stage=settings.stage,
        request_timeout=settings.request_timeout_seconds,
    )
    return Runtime(settings, orchestrator, engine, metadata)


def health_handler(stage: str | None) -> W.Handler:
    async def health(request: HttpRequest) -> HttpResponse:
        return HttpResponse(200, json.dumps({"status": "ok"}), response_headers(stage))

    return health


def metrics_handler(metrics: PrometheusMetrics) -> W.Handler:
    async def scrape(request: HttpRequest) -> HttpResponse:
        return HttpResponse(
            200, metrics.exposition(), {"Content-Type": CONTENT_TYPE_LATEST}
        )

    return scrape


def create_app(
    settings: Settings | None = None,
    runtime: Runtime | None = None,
) -> fastapi.FastAPI:
    settings = settings if settings is not None else get_settings()
    runtime = runtime if runtime is not None else build_runtime(settings)

    @asynccontextmanager
    async def lifespan(app: fastapi.FastAPI) -> AsyncIterator[None]:
        await runtime.start()
        yield
        await runtime.stop()

    application = W.Application().mount(
        W.endpoint(runtime.orchestrator.handle).expose(
            W.HTTPRouteTrigger("POST", CREATE_ORDER_PATH)
        ),
        W.endpoint(health_handler(settings.stage)).expose(
            W.HTTPRouteTrigger("GET", HEALTH_PATH)
        ),
    )
    metrics = runtime.orchestrator.observability.metrics
    if isinstance(metrics, PrometheusMetrics):
        application.mount(
            W.endpoint(metrics_handler(metrics)).expose(
                W.HTTPRouteTrigger("GET", METRICS_PATH)
            )
        )
    fapp = wire_fastapi.from_application(
        application, title=settings.service_name, lifespan=lifespan
    )
    fapp.state.runtime = runtime
    return fapp


__all__ = (
    "MEMORY_URL",
    "CREATE_ORDER_PATH",
    "HEALTH_PATH",
    "METRICS_PATH",
    "Runtime",
    "build_policy",
    "build_runtime",
    "health_handler",
    "metrics_handler",
    "create_app",
)
