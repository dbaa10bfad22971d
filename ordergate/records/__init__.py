"""
Records — persistent store for order entities.

    from ordergate import records as R

    store = R.MemoryRecordStore()
    match await store.upsert(order.to_item(), order.id):
        case Ok(None):
            ...
        case Error(err):
            ...  # StoreError

Single-item writes, no retries. Driver exceptions surface as StoreError.
"""

from ordergate.records._store import (
    RecordStore,
    MemoryRecordStore,
)
from ordergate.records._sqlalchemy import (
    SQLAlchemyRecordStore,
    orders_table,
)

__all__ = (
    "RecordStore",
    "MemoryRecordStore",
    "SQLAlchemyRecordStore",
    "orders_table",
)
