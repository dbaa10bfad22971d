"""
Schema — declarative shapes for inbound and persisted orders.

    from ordergate import schema as S

    match S.parse_json(body):
        case Ok(payload):
            result = S.validate(S.CreateOrderSchema, payload)

Every schema forbids unknown fields and requires every declared
non-optional field, so the property count is exact:

    CreateOrderSchema   customerId, items, total                  (3)
    OrderSchema         pk, sk, id, customerId, items, total,
                        status, created, updated                  (9)
"""

from ordergate.schema._models import (
    Number,
    Integer,
    IsoDateTime,
    OrderItemSchema,
    CreateOrderSchema,
    OrderSchema,
)
from ordergate.schema._validate import (
    validate,
    parse_json,
    format_path,
)

__all__ = (
    # Shapes
    "Number",
    "Integer",
    "IsoDateTime",
    "OrderItemSchema",
    "CreateOrderSchema",
    "OrderSchema",
    # Validation
    "validate",
    "parse_json",
    "format_path",
)
