"""Tests for the HTTP boundaries — FastAPI app and API Gateway proxy adapter."""

from __future__ import annotations

import base64
import json
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from ordergate.app import CREATE_ORDER_PATH, METRICS_PATH, build_runtime, create_app
from ordergate.config import Settings
from ordergate.observability import Observability
from ordergate.wire import Application, HTTPRouteTrigger, endpoint
from ordergate.wire.contrib import apigw
from ordergate.wire.contrib import fastapi as wire_fastapi


@pytest.fixture
def client(settings: Settings, observability: Observability) -> Iterator[TestClient]:
    runtime = build_runtime(settings, observability=observability)
    with TestClient(create_app(settings, runtime)) as client:
        yield client


class TestFastAPI:
    def test_create_order(self, client, body):
        response = client.post(CREATE_ORDER_PATH, content=body)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["x-stage"] == "test"
        order = response.json()
        assert set(order) == {"id", "customerId", "items", "total", "status", "created", "updated"}

    def test_repeat_is_deduplicated(self, client, body):
        first = client.post(CREATE_ORDER_PATH, content=body)
        second = client.post(CREATE_ORDER_PATH, content=body)
        assert first.json() == second.json()

    def test_validation_error(self, client):
        response = client.post(CREATE_ORDER_PATH, content='{"customerId": "c"}')
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_empty_body(self, client):
        response = client.post(CREATE_ORDER_PATH, content=b"")
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "no payload body"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_wrong_method(self, client):
        assert client.get(CREATE_ORDER_PATH).status_code == 405

    def test_metrics_scrape(self, client, body):
        client.post(CREATE_ORDER_PATH, content=body)
        client.post(CREATE_ORDER_PATH, content="{}")

        response = client.get(METRICS_PATH)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "Orders_SuccessfulCreateOrder_total 1.0" in response.text
        assert "Orders_CreateOrderError_total 1.0" in response.text

    def test_sqlite_backed_app(self, tmp_path, body):
        settings = Settings(
            record_store_name="orders",
            idempotency_store_name="orders-idempotency",
            database_url=f"sqlite+aiosqlite:///{tmp_path / 'app.db'}",
        )
        with TestClient(create_app(settings)) as client:
            first = client.post(CREATE_ORDER_PATH, content=body)
            second = client.post(CREATE_ORDER_PATH, content=body)

        assert first.status_code == 200
        assert first.json() == second.json()
        assert "x-stage" not in first.headers


class TestWire:
    def test_mount_keeps_every_endpoint(self):
        async def handler(request):
            raise AssertionError("not called")

        app = Application().mount(
            endpoint(handler).expose(HTTPRouteTrigger("GET", "/a")),
            endpoint(handler).expose(HTTPRouteTrigger("POST", "/b")),
        )
        assert len(app.endpoints) == 2

        routes = [
            (method, path)
            for endp in app.endpoints
            for method, path, _ in wire_fastapi.compile_to_fastapi_route(endp)
        ]
        assert routes == [("GET", "/a"), ("POST", "/b")]


class TestApiGateway:
    async def test_adapter(self, orchestrator, body):
        adapter = apigw.ProxyAdapter(orchestrator.handle)
        result = await adapter({"httpMethod": "POST", "path": "/v1/orders", "body": body})

        assert result["statusCode"] == 200
        assert result["headers"]["Content-Type"] == "application/json"
        assert json.loads(result["body"])["status"] == "PENDING"

    async def test_base64_body(self, orchestrator, body):
        adapter = apigw.ProxyAdapter(orchestrator.handle)
        event = {
            "httpMethod": "POST",
            "path": "/v1/orders",
            "body": base64.b64encode(body.encode()).decode(),
            "isBase64Encoded": True,
        }
        assert (await adapter(event))["statusCode"] == 200

    async def test_missing_body(self, orchestrator):
        adapter = apigw.ProxyAdapter(orchestrator.handle)
        result = await adapter({"httpMethod": "POST", "path": "/v1/orders", "body": None})
        assert result["statusCode"] == 400

    def test_module_handler(self, monkeypatch, body):
        monkeypatch.setenv("TABLE_NAME", "orders")
        monkeypatch.setenv("IDEMPOTENCY_TABLE_NAME", "orders-idempotency")
        monkeypatch.setenv("ORDERGATE_DATABASE_URL", "memory://")
        monkeypatch.setenv("STAGE", "dev")
        monkeypatch.setattr("ordergate.observability.setup_logging", lambda settings: None)
        monkeypatch.setattr("ordergate.observability.setup_tracing", lambda settings: None)

        try:
            event = {"httpMethod": "POST", "path": "/v1/orders", "body": body}
            first = apigw.handler(event, None)
            second = apigw.handler(event, None)
        finally:
            apigw.shutdown()

        assert first["statusCode"] == 200
        assert first["headers"]["X-Stage"] == "dev"
        assert first["body"] == second["body"]
