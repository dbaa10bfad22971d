"""
Validation — run a schema, report the first failure as a ValidationError.

Pure functions. No side effects, nothing raised.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

import pydantic
from kungfu import Result, Ok, Error

from ordergate.errors import ValidationError


def format_path(loc: Sequence[str | int]) -> str:
    """
    Render a pydantic error location as a JSON path.

        ("items", 0, "quantity") → "items[0].quantity"
    """
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif path:
            path += f".{part}"
        else:
            path = part
    return path


def validate[M: pydantic.BaseModel](
    schema: type[M], value: Any
) -> Result[M, ValidationError]:
    """Validate value against schema. Returns the parsed model."""
    try:
        return Ok(schema.model_validate(value))
    except pydantic.ValidationError as e:
        first = e.errors(include_url=False)[0]
        return Error(ValidationError(format_path(first["loc"]), first["msg"]))


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def parse_json(body: str | bytes | None) -> Result[Any, ValidationError]:
    """
    Decode a raw request body. Empty and missing bodies are rejected,
    as are the NaN / Infinity literals json accepts by default.
    """
    if not body:
        return Error(ValidationError("", "no payload body"))
    try:
        return Ok(json.loads(body, parse_constant=_reject_constant))
    except ValueError as e:
        return Error(ValidationError("", f"invalid JSON: {e}"))


__all__ = ("validate", "parse_json", "format_path")
