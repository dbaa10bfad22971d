"""
create_order — build, validate and persist a new order.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable

import structlog
from kungfu import Result, Ok, Error

from ordergate._types import Clock, utc_now
from ordergate.errors import StoreError, ValidationError
from ordergate.orders._domain import (
    CreateOrder,
    Order,
    OrderStatus,
    iso_timestamp,
)
from ordergate.records import RecordStore
from ordergate.schema import CreateOrderSchema, OrderSchema, validate

logger = structlog.get_logger(__name__)


def new_order_id() -> str:
    return str(uuid.uuid4())


async def create_order(
    request: CreateOrderSchema | CreateOrder,
    *,
    store: RecordStore,
    ids: Callable[[], str] = new_order_id,
    clock: Clock = utc_now,
    log: structlog.stdlib.BoundLogger = logger,
) -> Result[Order, ValidationError | StoreError]:
    """
    Create a PENDING order from a validated request.

    The constructed entity is validated against OrderSchema before the
    write, so a stored order always conforms to it.
    """
    command = (
        CreateOrder.from_schema(request)
        if isinstance(request, CreateOrderSchema)
        else request
    )

    order_id = ids()
    now = iso_timestamp(clock())
    order = Order(
        id=order_id,
        customer_id=command.customer_id,
        items=command.items,
        total=command.total,
        status=OrderStatus.PENDING,
        created=now,
        updated=now,
    )
    item = order.to_item()

    match validate(OrderSchema, item):
        case Error(err):
            log.error(
                "order_failed_validation",
                order_id=order_id,
                path=err.path,
                reason=err.reason,
            )
            return Error(err)
        case Ok(_):
            pass

    log.info("creating_order", order_id=order_id)

    match await store.upsert(item, order_id):
        case Error(err):
            return Error(err)
        case Ok(_):
            log.info("order_created", order_id=order_id)
            return Ok(order)


__all__ = ("create_order", "new_order_id")
