"""
Wire — expose handlers via triggers.

    from ordergate.wire import endpoint, Application
    from ordergate.wire.triggers.http import HTTPRouteTrigger
    from ordergate.wire.contrib import fastapi

    orders = endpoint(orchestrator.handle).expose(HTTPRouteTrigger("POST", "/v1/orders"))
    app = fastapi.from_application(Application().mount(orders))
"""

from ordergate.wire._endpoint import (
    Endpoint,
    endpoint,
)
from ordergate.wire._app import Application, application
from ordergate.wire._types import (
    Handler,
    Trigger,
)

from ordergate.wire.triggers.http import (
    HTTPRouteTrigger,
    Method,
    Path,
)

# Subpackages
from ordergate.wire import triggers, contrib

__all__ = (
    # Core API
    "Endpoint",
    "endpoint",
    "Application",
    "application",
    "Handler",
    "Trigger",
    # Built-ins
    "HTTPRouteTrigger",
    "Method",
    "Path",
    # Subpackages
    "triggers",
    "contrib",
)
