"""
Orchestrator — drives one request through the stages and answers it.

    orchestrator = Orchestrator(services, observability, stage="prod")
    response = await orchestrator.handle(HttpRequest("POST", "/v1/orders", body))

Every outcome ends in exactly one response. Each request runs inside a
trace span; errors are logged with the request context, counted,
annotated on the span and mapped to a status code.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass

from combinators import lift as L
from kungfu import Ok, Error

from ordergate._types import HttpRequest, HttpResponse
from ordergate.errors import DeadlineExceeded, PipelineError, UseCaseError, error_kind
from ordergate.observability import REQUEST_SPAN, Observability
from ordergate.pipeline._context import PipelineContext, PipelineState
from ordergate.pipeline._responses import ok_response, to_http
from ordergate.pipeline._stages import STAGES, Services, Stage


@dataclass(slots=True)
class _Progress:
    """Latest context reached. Survives a deadline cancelling the stages."""

    ctx: PipelineContext
    error: PipelineError | None = None


class Orchestrator:
    def __init__(
        self,
        services: Services,
        observability: Observability,
        *,
        stage: str | None = None,
        request_timeout: float | None = None,
        stages: tuple[Stage, ...] = STAGES,
    ) -> None:
        self.services = services
        self.observability = observability
        self.stage = stage
        self.request_timeout = request_timeout
        self.stages = stages

    async def handle(self, request: HttpRequest) -> HttpResponse:
        return await self.process(request.body)

    async def process(self, body: str | bytes | None) -> HttpResponse:
        ctx = await self.run(body)
        if ctx.response is None:
            err = UseCaseError(f"No response in state {ctx.state}")
            return to_http(err, stage=self.stage)
        return ctx.response

    async def run(self, body: str | bytes | None) -> PipelineContext:
        """Run the pipeline and return the final context (RESPONDED or ERROR)."""
        with self.observability.tracer.span(REQUEST_SPAN):
            return await self._run(body)

    async def _run(self, body: str | bytes | None) -> PipelineContext:
        log = self.observability.request_logger()
        if self.observability.log_event:
            log.info("received_event", body=body)

        progress = _Progress(PipelineContext(body=body, log=log))
        started = time.perf_counter()

        try:
            async with asyncio.timeout(self.request_timeout):
                await self._advance(progress)
        except TimeoutError:
            progress.error = DeadlineExceeded(self.request_timeout or 0.0)

        if progress.error is not None:
            final = self._fail(progress.ctx, progress.error)
        else:
            final = self._respond(progress.ctx)

        final.log.debug(
            "request_finished",
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
            state=final.state.value,
        )
        return final

    async def _advance(self, progress: _Progress) -> None:
        for stage in self.stages:
            if progress.ctx.state != stage.accepts:
                continue
            ctx = progress.ctx
            caught = await L.catching_async(
                lambda: stage.run(ctx, self.services),
                on_error=lambda e: UseCaseError(f"Stage {stage.name} crashed: {e}", e),
            )
            match caught:
                case Ok(Ok(next_ctx)):
                    progress.ctx = next_ctx
                case Ok(Error(err)) | Error(err):
                    progress.error = err
                    return

    def _respond(self, ctx: PipelineContext) -> PipelineContext:
        if ctx.state != PipelineState.SHAPED or ctx.public is None:
            err = UseCaseError(f"Pipeline stopped in state {ctx.state}")
            return self._fail(ctx, err)
        self.observability.record_success()
        return ctx.advance(
            PipelineState.RESPONDED,
            response=ok_response(ctx.public, stage=self.stage),
        )

    def _fail(self, ctx: PipelineContext, err: PipelineError) -> PipelineContext:
        ctx.log.error(
            "create_order_failed",
            error=err.message,
            error_kind=error_kind(err),
            fingerprint=ctx.fingerprint or getattr(err, "fingerprint", None),
            order_id=ctx.order_id,
        )
        self.observability.record_error()
        return ctx.advance(
            PipelineState.ERROR,
            error=err,
            response=to_http(err, stage=self.stage),
        )


__all__ = ("Orchestrator",)
