"""
Observability — structured logging, Prometheus counters, OpenTelemetry spans.

    setup_logging(settings)
    setup_tracing(settings)
    obs = Observability.from_settings(settings)

    log = obs.request_logger(fingerprint=key)
    log.info("creating_order", order_id=order_id)

    with obs.tracer.span("CreateOrder"):
        obs.record_success()     # counter + span attribute

Handles are passed explicitly into the orchestrator. Each
PrometheusMetrics owns its CollectorRegistry, so building a second
runtime in one process does not clash on metric names.
"""

from __future__ import annotations

import logging
import random
import re
import sys
from collections.abc import Iterator, MutableMapping
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol

import structlog
from structlog.typing import Processor
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from prometheus_client import CollectorRegistry, Counter, generate_latest

if TYPE_CHECKING:
    from ordergate.config import Settings


SUCCESS_METRIC = "SuccessfulCreateOrder"
ERROR_METRIC = "CreateOrderError"
SUCCESS_ANNOTATION = "SuccessfulCreateOrder"
REQUEST_SPAN = "CreateOrder"

type RequestLogger = structlog.stdlib.BoundLogger
"""Logger bound to one request's context (fingerprint, order_id, sampled)."""


# ═══════════════════════════════════════════════════════════════════════════════
# Logging
# ═══════════════════════════════════════════════════════════════════════════════

_METHOD_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "exception": logging.ERROR,
    "critical": logging.CRITICAL,
    "fatal": logging.CRITICAL,
}


def sampled_level_filter(threshold: int) -> Processor:
    """
    Drop events below threshold unless the logger is bound with sampled=True.

    The level check lives here rather than on the stdlib logger, so a
    sampled request can emit DEBUG without lowering the shared level.
    """

    def processor(
        logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        level = _METHOD_LEVELS.get(method_name, logging.INFO)
        if level < threshold and not event_dict.get("sampled"):
            raise structlog.DropEvent
        return event_dict

    return processor


def add_service(service: str) -> Processor:
    def processor(
        logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        event_dict.setdefault("service", service)
        return event_dict

    return processor


def setup_logging(settings: Settings) -> None:
    """Configure structlog on top of stdlib logging."""
    threshold = logging.getLevelNamesMapping()[settings.log_level]

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=threshold,
        force=True,
    )
    # Level filtering for our own events happens in sampled_level_filter
    logging.getLogger("ordergate").setLevel(logging.DEBUG)

    # Reduce verbosity from external libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            sampled_level_filter(threshold),
            structlog.processors.TimeStamper(fmt="iso"),
            add_service(settings.service_name),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    if settings.log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
        ],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


def get_logger(name: str) -> RequestLogger:
    return structlog.get_logger(name)


# ═══════════════════════════════════════════════════════════════════════════════
# Metrics
# ═══════════════════════════════════════════════════════════════════════════════


class MetricUnit(StrEnum):
    COUNT = "Count"
    MILLISECONDS = "Milliseconds"
    SECONDS = "Seconds"


class MetricsSink(Protocol):
    def add_metric(self, name: str, unit: MetricUnit, value: float) -> None: ...


def _metric_name(raw: str) -> str:
    return re.sub(r"[^a-zA-Z0-9_]", "_", raw)


class PrometheusMetrics:
    """
    Named counters in a Prometheus registry.

    Counters are created on first use:
        metrics.add_metric("SuccessfulCreateOrder", MetricUnit.COUNT, 1)
        # exposes Orders_SuccessfulCreateOrder_total
    """

    def __init__(
        self, namespace: str, registry: CollectorRegistry | None = None
    ) -> None:
        self.namespace = _metric_name(namespace)
        self.registry = registry if registry is not None else CollectorRegistry()
        self._counters: dict[str, Counter] = {}

    def add_metric(self, name: str, unit: MetricUnit, value: float) -> None:
        counter = self._counters.get(name)
        if counter is None:
            counter = Counter(
                _metric_name(name),
                f"{name} ({unit.value})",
                namespace=self.namespace,
                registry=self.registry,
            )
            self._counters[name] = counter
        counter.inc(value)

    def value(self, name: str) -> float:
        """Current total for a counter, 0 if never incremented."""
        sample = self.registry.get_sample_value(
            f"{self.namespace}_{_metric_name(name)}_total"
        )
        return sample or 0.0

    def exposition(self) -> str:
        """Text exposition format for a scrape endpoint."""
        return generate_latest(self.registry).decode("utf-8")


# ═══════════════════════════════════════════════════════════════════════════════
# Tracing
# ═══════════════════════════════════════════════════════════════════════════════


class TraceSink(Protocol):
    def span(self, name: str) -> AbstractContextManager[None]: ...

    def put_annotation(self, key: str, value: str | bool | float) -> None: ...


class SpanTracer:
    """Annotations become attributes on the current OpenTelemetry span."""

    def __init__(self, tracer: trace.Tracer) -> None:
        self._tracer = tracer

    @contextmanager
    def span(self, name: str) -> Iterator[None]:
        with self._tracer.start_as_current_span(name):
            yield

    def put_annotation(self, key: str, value: str | bool | float) -> None:
        trace.get_current_span().set_attribute(key, value)


def setup_tracing(settings: Settings) -> None:
    """Install an SDK tracer provider that prints finished spans, when enabled."""
    if not settings.tracing_enabled:
        return

    provider = TracerProvider(
        resource=Resource.create({"service.name": settings.service_name})
    )
    provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)


# ═══════════════════════════════════════════════════════════════════════════════
# Bundle
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Observability:
    logger: RequestLogger
    metrics: MetricsSink
    tracer: TraceSink
    sample_rate: float = 0.0
    log_event: bool = False
    rng: random.Random = field(default_factory=random.Random)

    def request_logger(self, **context: object) -> RequestLogger:
        if self.sample_rate > 0 and self.rng.random() < self.sample_rate:
            context["sampled"] = True
        return self.logger.bind(**context)

    def record_success(self) -> None:
        self.metrics.add_metric(SUCCESS_METRIC, MetricUnit.COUNT, 1)
        self.tracer.put_annotation(SUCCESS_ANNOTATION, True)

    def record_error(self) -> None:
        self.metrics.add_metric(ERROR_METRIC, MetricUnit.COUNT, 1)
        self.tracer.put_annotation(SUCCESS_ANNOTATION, False)

    @classmethod
    def from_settings(cls, settings: Settings) -> Observability:
        return cls(
            logger=get_logger("ordergate.orders"),
            metrics=PrometheusMetrics(settings.metrics_namespace),
            tracer=SpanTracer(trace.get_tracer("ordergate")),
            sample_rate=settings.log_sample_rate,
            log_event=settings.log_event,
        )


__all__ = (
    "SUCCESS_METRIC",
    "ERROR_METRIC",
    "SUCCESS_ANNOTATION",
    "REQUEST_SPAN",
    "RequestLogger",
    "sampled_level_filter",
    "add_service",
    "setup_logging",
    "get_logger",
    "MetricUnit",
    "MetricsSink",
    "PrometheusMetrics",
    "TraceSink",
    "SpanTracer",
    "setup_tracing",
    "Observability",
)
