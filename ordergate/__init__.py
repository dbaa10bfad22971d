"""
ordergate — idempotent order creation service.

    from ordergate import idempotency as I   # Dedup gate
    from ordergate import orders as Ord      # Use case
    from ordergate import pipeline as P      # Request stages
    from ordergate.app import create_app     # FastAPI app
"""

from ordergate import graph
from ordergate import schema
from ordergate import idempotency
from ordergate import records
from ordergate import orders
from ordergate import pipeline
from ordergate._types import (
    Lazy,
    LCR,
    JSONObject,
    HttpRequest,
    HttpResponse,
)

__version__ = "0.1.0"

__all__ = (
    "graph",
    "schema",
    "idempotency",
    "records",
    "orders",
    "pipeline",
    "Lazy",
    "LCR",
    "JSONObject",
    "HttpRequest",
    "HttpResponse",
)
