"""Tests for ``ordergate.orders`` — entity factory, use case and shaping."""

from __future__ import annotations

import uuid

import pytest
from kungfu import Ok, Error
from structlog.testing import capture_logs

from ordergate import records as R
from ordergate.errors import StoreError, ValidationError
from ordergate.orders import (
    DEFAULT_INTERNAL_KEYS,
    Order,
    OrderItem,
    OrderStatus,
    create_order,
    iso_timestamp,
    order_key,
    strip_internal_keys,
)
from ordergate.schema import CreateOrderSchema, OrderSchema, validate

from conftest import FixedClock


@pytest.fixture
def request_model(payload) -> CreateOrderSchema:
    return CreateOrderSchema.model_validate(payload)


class TestDomain:
    def test_order_key(self):
        assert order_key("abc") == "ORDER#abc"

    def test_iso_timestamp_is_utc_millis(self, clock: FixedClock):
        assert iso_timestamp(clock()) == "2024-05-01T10:00:00.000Z"

    def test_keys_derive_from_id(self):
        order = Order(
            id="1",
            customer_id="c",
            items=(),
            total=0,
            status=OrderStatus.PENDING,
            created="x",
            updated="x",
        )
        assert order.pk == order.sk == "ORDER#1"

    def test_item_omits_missing_price(self):
        assert OrderItem("p", 1).to_item() == {"productId": "p", "quantity": 1}
        assert OrderItem("p", 1, 0).to_item() == {"productId": "p", "quantity": 1, "price": 0}


class TestCreateOrder:
    async def test_builds_pending_order(self, request_model, record_store, clock):
        result = await create_order(request_model, store=record_store, clock=clock)

        order = result.unwrap()
        assert order.status is OrderStatus.PENDING
        assert order.created == order.updated == "2024-05-01T10:00:00.000Z"
        assert order.customer_id == "cust-1"
        assert uuid.UUID(order.id).version == 4

    async def test_persists_nine_field_item(self, request_model, record_store, ids):
        order = (await create_order(request_model, store=record_store, ids=ids)).unwrap()

        item = record_store.get(order.pk)
        assert item is not None
        assert set(item) == {
            "pk", "sk", "id", "customerId", "items", "total", "status", "created", "updated",
        }
        assert item["pk"] == item["sk"] == f"ORDER#{order.id}"
        assert item["items"] == [
            {"productId": "p-1", "quantity": 2, "price": 9.99},
            {"productId": "p-2", "quantity": 1},
        ]
        assert isinstance(validate(OrderSchema, item), Ok)
        assert record_store.writes == 1

    async def test_ids_are_unique(self, request_model, record_store):
        first = (await create_order(request_model, store=record_store)).unwrap()
        second = (await create_order(request_model, store=record_store)).unwrap()
        assert first.id != second.id
        assert len(record_store) == 2

    async def test_store_failure(self, request_model):
        store = R.MemoryRecordStore(fail_with=StoreError("boom"))
        assert await create_order(request_model, store=store) == Error(StoreError("boom"))
        assert store.writes == 0

    async def test_invalid_entity_is_not_written(self, request_model, record_store):
        bad = await create_order(
            request_model.model_copy(update={"total": "12"}),
            store=record_store,
        )
        match bad:
            case Error(ValidationError(path="total")):
                pass
            case other:
                pytest.fail(f"unexpected {other!r}")
        assert record_store.writes == 0

    async def test_logs_lifecycle(self, request_model, record_store, ids):
        with capture_logs() as logs:
            order = (await create_order(request_model, store=record_store, ids=ids)).unwrap()

        assert [(e["event"], e["order_id"]) for e in logs] == [
            ("creating_order", order.id),
            ("order_created", order.id),
        ]


class TestStripInternalKeys:
    def test_removes_internal_keys(self):
        item = {k: 1 for k in DEFAULT_INTERNAL_KEYS} | {"id": "1", "total": 5}
        assert strip_internal_keys(item) == {"id": "1", "total": 5}

    def test_does_not_mutate(self):
        item = {"pk": "a", "sk": "b", "id": "1"}
        strip_internal_keys(item)
        assert item == {"pk": "a", "sk": "b", "id": "1"}

    def test_custom_keys(self):
        assert strip_internal_keys({"a": 1, "b": 2}, keys=["a"]) == {"b": 2}
