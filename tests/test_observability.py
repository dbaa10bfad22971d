"""Tests for ``ordergate.observability`` — logging, counters, spans."""

from __future__ import annotations

import json
import logging
import random
from collections.abc import Iterator

import pytest
import structlog
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from structlog.testing import capture_logs

from ordergate.observability import (
    ERROR_METRIC,
    SUCCESS_METRIC,
    MetricUnit,
    Observability,
    PrometheusMetrics,
    SpanTracer,
    add_service,
    get_logger,
    sampled_level_filter,
    setup_logging,
)

from conftest import last_span_attribute


@pytest.fixture
def restore_logging() -> Iterator[None]:
    handlers, level = logging.root.handlers[:], logging.root.level
    yield
    structlog.reset_defaults()
    logging.root.handlers[:] = handlers
    logging.root.setLevel(level)


class TestSampling:
    def test_drops_events_below_threshold(self):
        processor = sampled_level_filter(20)
        with pytest.raises(structlog.DropEvent):
            processor(None, "debug", {"event": "hidden"})

    def test_sampled_events_pass(self):
        processor = sampled_level_filter(20)
        event = {"event": "shown", "sampled": True}
        assert processor(None, "debug", event) is event

    def test_events_at_threshold_pass(self):
        processor = sampled_level_filter(20)
        assert processor(None, "info", {"event": "x"}) == {"event": "x"}
        assert processor(None, "error", {"event": "x"}) == {"event": "x"}

    def test_request_logger_binds_sampled_by_rate(self, metrics, tracer):
        always = Observability(
            get_logger("ordergate.tests"), metrics, tracer,
            sample_rate=1.0, rng=random.Random(0),
        )
        never = Observability(get_logger("ordergate.tests"), metrics, tracer)

        with capture_logs() as logs:
            always.request_logger(fingerprint="abc").debug("one")
            never.request_logger(fingerprint="abc").debug("two")

        assert logs[0]["sampled"] is True
        assert logs[0]["fingerprint"] == "abc"
        assert "sampled" not in logs[1]

    def test_add_service(self):
        processor = add_service("orders")
        assert processor(None, "info", {"event": "x"})["service"] == "orders"
        assert processor(None, "info", {"service": "own"})["service"] == "own"


class TestSetupLogging:
    def test_json_lines_with_sampled_debug(self, settings, capsys, restore_logging):
        setup_logging(
            settings.model_copy(update={"service_name": "orders", "log_level": "INFO"})
        )
        log = get_logger("ordergate.tests")

        log.debug("hidden")
        log.bind(sampled=True).debug("shown", order_id="o-1")
        log.info("plain")

        lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
        events = [line["event"] for line in lines]
        assert events == ["shown", "plain"]
        assert lines[0]["order_id"] == "o-1"
        assert lines[0]["service"] == "orders"
        assert lines[0]["level"] == "debug"

    def test_console_format(self, settings, capsys, restore_logging):
        setup_logging(settings.model_copy(update={"log_format": "console"}))
        get_logger("ordergate.tests").warning("careful", order_id="o-2")

        out = capsys.readouterr().out
        assert "careful" in out
        assert "order_id=o-2" in out


class TestPrometheusMetrics:
    def test_counts_per_name(self):
        metrics = PrometheusMetrics("Orders")
        metrics.add_metric(SUCCESS_METRIC, MetricUnit.COUNT, 1)
        metrics.add_metric(SUCCESS_METRIC, MetricUnit.COUNT, 2)

        assert metrics.value(SUCCESS_METRIC) == 3
        assert metrics.value(ERROR_METRIC) == 0

    def test_exposition(self):
        metrics = PrometheusMetrics("Orders")
        metrics.add_metric(ERROR_METRIC, MetricUnit.COUNT, 1)
        assert "Orders_CreateOrderError_total 1.0" in metrics.exposition()

    def test_registries_are_independent(self):
        first, second = PrometheusMetrics("Orders"), PrometheusMetrics("Orders")
        first.add_metric(SUCCESS_METRIC, MetricUnit.COUNT, 1)
        assert second.value(SUCCESS_METRIC) == 0

    def test_namespace_is_sanitized(self):
        metrics = PrometheusMetrics("order-gate")
        metrics.add_metric(SUCCESS_METRIC, MetricUnit.COUNT, 1)
        assert "order_gate_SuccessfulCreateOrder_total" in metrics.exposition()


class TestRecording:
    def test_success(self, observability, metrics, tracer, spans: InMemorySpanExporter):
        with tracer.span("CreateOrder"):
            observability.record_success()

        assert metrics.value(SUCCESS_METRIC) == 1
        assert last_span_attribute(spans, "SuccessfulCreateOrder") is True

    def test_error(self, observability, metrics, tracer, spans: InMemorySpanExporter):
        with tracer.span("CreateOrder"):
            observability.record_error()

        assert metrics.value(ERROR_METRIC) == 1
        assert last_span_attribute(spans, "SuccessfulCreateOrder") is False


class TestFromSettings:
    def test_wires_settings(self, settings):
        obs = Observability.from_settings(
            settings.model_copy(
                update={"metrics_namespace": "Shop", "log_sample_rate": 0.5, "log_event": True}
            )
        )
        assert isinstance(obs.metrics, PrometheusMetrics)
        assert obs.metrics.namespace == "Shop"
        assert isinstance(obs.tracer, SpanTracer)
        assert obs.sample_rate == 0.5
        assert obs.log_event

    def test_spans_without_provider_are_harmless(self, settings):
        obs = Observability.from_settings(settings)
        with obs.tracer.span("CreateOrder"):
            obs.record_success()
        assert obs.metrics.value(SUCCESS_METRIC) == 1
