"""
Order domain values.

Attribute names are snake_case here; the stored item uses the
camelCase field names clients send (customerId, productId).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from ordergate.schema import CreateOrderSchema, OrderItemSchema


class OrderStatus(StrEnum):
    PENDING = "PENDING"


def order_key(order_id: str) -> str:
    """Partition and sort key of an order."""
    return f"ORDER#{order_id}"


def iso_timestamp(moment: datetime) -> str:
    """UTC ISO-8601 with milliseconds, e.g. 2024-05-01T10:00:00.000Z."""
    return (
        moment.astimezone(UTC)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


@dataclass(frozen=True, slots=True)
class OrderItem:
    product_id: str
    quantity: int
    price: int | float | None = None

    @classmethod
    def from_schema(cls, item: OrderItemSchema) -> OrderItem:
        return cls(item.product_id, item.quantity, item.price)

    def to_item(self) -> dict[str, Any]:
        out: dict[str, Any] = {"productId": self.product_id, "quantity": self.quantity}
        if self.price is not None:
            out["price"] = self.price
        return out


@dataclass(frozen=True, slots=True)
class CreateOrder:
    """Validated creation request."""

    customer_id: str
    items: tuple[OrderItem, ...]
    total: int | float

    @classmethod
    def from_schema(cls, request: CreateOrderSchema) -> CreateOrder:
        return cls(
            customer_id=request.customer_id,
            items=tuple(OrderItem.from_schema(i) for i in request.items),
            total=request.total,
        )


@dataclass(frozen=True, slots=True)
class Order:
    """Persisted order entity."""

    id: str
    customer_id: str
    items: tuple[OrderItem, ...]
    total: int | float
    status: OrderStatus
    created: str
    updated: str

    @property
    def pk(self) -> str:
        return order_key(self.id)

    @property
    def sk(self) -> str:
        return order_key(self.id)

    def to_item(self) -> dict[str, Any]:
        """Storage representation, key attributes included."""
        return {
            "pk": self.pk,
            "sk": self.sk,
            "id": self.id,
            "customerId": self.customer_id,
            "items": [i.to_item() for i in self.items],
            "total": self.total,
            "status": self.status.value,
            "created": self.created,
            "updated": self.updated,
        }


__all__ = (
    "OrderStatus",
    "OrderItem",
    "CreateOrder",
    "Order",
    "order_key",
    "iso_timestamp",
)
