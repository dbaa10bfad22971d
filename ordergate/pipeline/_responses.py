"""
HTTP mapping — pipeline errors and results to responses.

Error bodies are rendered through pydantic models so every error shares
one shape: {"error": {"code", "message", "path"?}}.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel

from ordergate._types import HttpResponse
from ordergate.errors import (
    ConflictError,
    DeadlineExceeded,
    PipelineError,
    ValidationError,
)

INTERNAL_ERROR_MESSAGE = "Internal server error"


class ErrorDetail(BaseModel):
    code: str
    message: str
    path: str | None = None


class ErrorResponse(BaseModel):
    error: ErrorDetail


def response_headers(stage: str | None = None) -> dict[str, str]:
    headers = {
        "Content-Type": "application/json",
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Credentials": "true",
    }
    if stage:
        headers["X-Stage"] = stage
    return headers


def ok_response(body: Any, *, stage: str | None = None) -> HttpResponse:
    return HttpResponse(200, json.dumps(body), response_headers(stage))


def _error_body(code: str, message: str, path: str | None = None) -> str:
    detail = ErrorDetail(code=code, message=message, path=path)
    return ErrorResponse(error=detail).model_dump_json(exclude_none=True)


def to_http(error: PipelineError, *, stage: str | None = None) -> HttpResponse:
    """Map an error to its response. Internal details never leak."""
    headers = response_headers(stage)

    match error:
        case ValidationError(path=path):
            return HttpResponse(
                400, _error_body("VALIDATION_ERROR", error.message, path), headers
            )
        case ConflictError(retry_after_seconds=retry_after):
            headers["Retry-After"] = str(retry_after)
            return HttpResponse(
                409, _error_body("REQUEST_IN_PROGRESS", error.message), headers
            )
        case DeadlineExceeded():
            return HttpResponse(
                504, _error_body("DEADLINE_EXCEEDED", error.message), headers
            )
        case _:
            # StoreError, FaultInjectedError, UseCaseError
            return HttpResponse(
                500, _error_body("INTERNAL_ERROR", INTERNAL_ERROR_MESSAGE), headers
            )


__all__ = (
    "INTERNAL_ERROR_MESSAGE",
    "ErrorDetail",
    "ErrorResponse",
    "response_headers",
    "ok_response",
    "to_http",
)
