"""
API Gateway proxy integration — Lambda-style entry point.

    adapter = ProxyAdapter(orchestrator.handle)
    result = await adapter(event)        # {"statusCode", "headers", "body"}

    # Synchronous runtimes call the module-level handler:
    handler(event, context)

The module-level handler builds its runtime from settings on first use
and keeps one event loop for the life of the process, so connection
pools survive between invocations.
"""

from __future__ import annotations

import asyncio
import base64
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import structlog

from ordergate._types import HttpRequest, HttpResponse
from ordergate.wire._types import Handler

if TYPE_CHECKING:
    from ordergate.app import Runtime

logger = structlog.get_logger(__name__)


def to_request(event: Mapping[str, Any]) -> HttpRequest:
    body = event.get("body")
    if body is not None and event.get("isBase64Encoded"):
        body = base64.b64decode(body)
    return HttpRequest(
        method=event.get("httpMethod", "POST"),
        path=event.get("path", "/"),
        body=body,
        headers=dict(event.get("headers") or {}),
    )


def to_result(response: HttpResponse) -> dict[str, Any]:
    return {
        "statusCode": response.status_code,
        "headers": dict(response.headers),
        "body": response.body,
    }


class ProxyAdapter:
    """Proxy event in, proxy result out."""

    def __init__(self, handler: Handler) -> None:
        self._handler = handler

    async def __call__(self, event: Mapping[str, Any]) -> dict[str, Any]:
        return to_result(await self._handler(to_request(event)))


# ═══════════════════════════════════════════════════════════════════════════════
# Process-wide entry point
# ═══════════════════════════════════════════════════════════════════════════════

_runner: asyncio.Runner | None = None
_runtime: Runtime | None = None


def _ensure_runtime() -> tuple[asyncio.Runner, Runtime]:
    global _runner, _runtime
    if _runner is None or _runtime is None:
        from ordergate.app import build_runtime
        from ordergate.config import get_settings
        from ordergate.observability import setup_logging, setup_tracing

        settings = get_settings()
        setup_logging(settings)
        setup_tracing(settings)
        _runner = asyncio.Runner()
        _runtime = build_runtime(settings)
        _runner.run(_runtime.start())
        logger.info("proxy_runtime_started", stage=settings.stage)
    return _runner, _runtime


def handler(event: Mapping[str, Any], context: object = None) -> dict[str, Any]:
    runner, runtime = _ensure_runtime()
    adapter = ProxyAdapter(runtime.orchestrator.handle)
    return runner.run(adapter(event))


def shutdown() -> None:
    """Dispose the runtime and close the loop."""
    global _runner, _runtime
    if _runner is not None:
        if _runtime is not None:
            _runner.run(_runtime.stop())
        _runner.close()
    _runner = None
    _runtime = None


__all__ = (
    "to_request",
    "to_result",
    "ProxyAdapter",
    "handler",
    "shutdown",
)
