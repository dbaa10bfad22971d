"""
Response shaping — drop storage-internal attributes before returning.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

DEFAULT_INTERNAL_KEYS: frozenset[str] = frozenset(
    {"pk", "sk", "TTL", "ttl", "gsi1pk", "gsi1sk", "gsi2pk", "gsi2sk"}
)


def strip_internal_keys(
    item: Mapping[str, Any],
    keys: Iterable[str] = DEFAULT_INTERNAL_KEYS,
) -> dict[str, Any]:
    """Copy of item without the given keys. The input is left untouched."""
    drop = frozenset(keys)
    return {k: v for k, v in item.items() if k not in drop}


__all__ = ("DEFAULT_INTERNAL_KEYS", "strip_internal_keys")
