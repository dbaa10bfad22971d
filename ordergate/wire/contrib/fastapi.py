"""
FastAPI integration — compile an Application into routes.

The route hands the raw body bytes to the endpoint handler untouched;
request parsing and validation stay in the pipeline.

    fapp = from_application(Application().mount(orders_endpoint))
"""

from collections.abc import Awaitable, Callable
from typing import Any

import fastapi

from ordergate._types import HttpRequest
from ordergate.wire._app import Application
from ordergate.wire._endpoint import Endpoint
from ordergate.wire._types import Handler
from ordergate.wire.triggers.http import HTTPRouteTrigger, Path

type RouteFunc = Callable[[fastapi.Request], Awaitable[fastapi.Response]]


def make_route(handler: Handler) -> RouteFunc:
    async def _route_handler(request: fastapi.Request) -> fastapi.Response:
        body = await request.body()
        response = await handler(
            HttpRequest(
                method=request.method,
                path=request.url.path,
                body=body,
                headers=dict(request.headers),
            )
        )
        return fastapi.Response(
            content=response.body,
            status_code=response.status_code,
            headers=dict(response.headers),
        )

    return _route_handler


def compile_to_fastapi_route(
    endp: Endpoint,
) -> list[tuple[str, Path, RouteFunc]]:  # (method, path, route_func)
    routes: list[tuple[str, Path, RouteFunc]] = []

    for trigger in endp.triggers:
        if not isinstance(trigger, HTTPRouteTrigger):
            continue
        routes.append((trigger.method.upper(), trigger.path, make_route(endp.handler)))

    return routes


def add_endpoint_to_app(
    app: fastapi.FastAPI,
    endp: Endpoint,
) -> None:
    for method, path, handler in compile_to_fastapi_route(endp):
        app.add_api_route(path, handler, methods=[method])


def from_application(app: Application, **kwargs: Any) -> fastapi.FastAPI:
    """Build a FastAPI app. kwargs go to the FastAPI constructor."""
    f_app = fastapi.FastAPI(**kwargs)

    for endp in app.endpoints:
        add_endpoint_to_app(f_app, endp)

    return f_app


__all__ = (
    "make_route",
    "add_endpoint_to_app",
    "from_application",
    "compile_to_fastapi_route",
)
