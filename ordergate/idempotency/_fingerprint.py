"""
Fingerprint — idempotency key derived from the request body.

By default the raw bytes are hashed as received, so payloads that differ
only in key order or whitespace are different requests. canonical=True
re-serializes JSON bodies (sorted keys, compact separators) first.
"""

from __future__ import annotations

import hashlib
import json


def fingerprint(
    body: str | bytes,
    *,
    canonical: bool = False,
    namespace: str = "",
) -> str:
    """
    SHA-256 hex digest of the body, optionally prefixed "namespace#".

    Example:
        >>> fingerprint('{"a":1}') == fingerprint(b'{"a":1}')
        True
        >>> fingerprint('{"a":1,"b":2}') == fingerprint('{"b": 2, "a": 1}')
        False
        >>> fingerprint('{"a":1,"b":2}', canonical=True) == fingerprint(
        ...     '{"b": 2, "a": 1}', canonical=True
        ... )
        True
    """
    raw = body.encode("utf-8") if isinstance(body, str) else body
    if canonical:
        raw = _canonical(raw)

    digest = hashlib.sha256(raw).hexdigest()
    return f"{namespace}#{digest}" if namespace else digest


def _canonical(raw: bytes) -> bytes:
    try:
        decoded = json.loads(raw)
    except ValueError:
        # Not JSON, nothing to normalize
        return raw
    return json.dumps(
        decoded, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


__all__ = ("fingerprint",)
