"""
Schema models — pydantic shapes with strict scalar types.

Note: strings are Strict*, numbers and integers go through _check_number /
_check_integer, so "2" is not an integer, true is not a number and
NaN / Infinity are not numbers at all. Models are not globally
strict, nested objects still validate from dicts.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    BeforeValidator,
    BaseModel,
    ConfigDict,
    Field,
    StrictStr,
    field_validator,
)


# ═══════════════════════════════════════════════════════════════════════════════
# Field Types
# ═══════════════════════════════════════════════════════════════════════════════


def _check_iso8601(value: str) -> str:
    if "T" not in value:
        raise ValueError("must be an ISO-8601 date-time")
    try:
        datetime.fromisoformat(value)
    except ValueError:
        raise ValueError("must be an ISO-8601 date-time") from None
    return value


def _check_number(value: Any) -> Any:
    # bool is an int subclass; JSON true is not a number.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("Input should be a valid number")
    if not math.isfinite(value):
        raise ValueError("Input should be a finite number")
    return value


def _check_integer(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("Input should be a valid integer")
    return value


Number = Annotated[int | float, BeforeValidator(_check_number)]
"""JSON number. Integers stay integers, strings and booleans are rejected."""

Integer = Annotated[int, BeforeValidator(_check_integer)]
"""JSON integer. 2.0 counts as 2, strings and booleans are rejected."""

IsoDateTime = Annotated[StrictStr, AfterValidator(_check_iso8601)]
"""ISO-8601 date-time string, e.g. 2024-05-01T10:00:00.000Z."""


class _Shape(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Shapes
# ═══════════════════════════════════════════════════════════════════════════════


class OrderItemSchema(_Shape):
    product_id: StrictStr = Field(alias="productId")
    quantity: Integer = Field(ge=1)
    price: Number | None = None

    @field_validator("price", mode="before")
    @classmethod
    def _price_is_not_null(cls, value: Any) -> Any:
        # Only runs when price is supplied; absent price keeps the default.
        if value is None:
            raise ValueError("must be a number")
        return value


class CreateOrderSchema(_Shape):
    """Inbound creation request."""

    customer_id: StrictStr = Field(alias="customerId")
    items: list[OrderItemSchema] = Field(min_length=1)
    total: Number


class OrderSchema(_Shape):
    """Persisted order, storage key fields included."""

    pk: StrictStr
    sk: StrictStr
    id: StrictStr
    customer_id: StrictStr = Field(alias="customerId")
    items: list[OrderItemSchema] = Field(min_length=1)
    total: Number
    status: StrictStr
    created: IsoDateTime
    updated: IsoDateTime


__all__ = (
    "Number",
    "Integer",
    "IsoDateTime",
    "OrderItemSchema",
    "CreateOrderSchema",
    "OrderSchema",
)
