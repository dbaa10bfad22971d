"""
Orders — entity factory and create-order use case.

    from ordergate import orders as Ord

    request = CreateOrderSchema.model_validate(payload)
    match await Ord.create_order(request, store=record_store):
        case Ok(order):
            public = Ord.strip_internal_keys(order.to_item())
        case Error(err):
            ...  # ValidationError | StoreError
"""

from ordergate.orders._domain import (
    OrderStatus,
    OrderItem,
    CreateOrder,
    Order,
    order_key,
    iso_timestamp,
)
from ordergate.orders._create import create_order
from ordergate.orders._shape import (
    DEFAULT_INTERNAL_KEYS,
    strip_internal_keys,
)

__all__ = (
    "OrderStatus",
    "OrderItem",
    "CreateOrder",
    "Order",
    "order_key",
    "iso_timestamp",
    "create_order",
    "DEFAULT_INTERNAL_KEYS",
    "strip_internal_keys",
)
