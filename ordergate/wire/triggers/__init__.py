"""
Triggers — describe how endpoints are exposed.

    from ordergate.wire.triggers.http import HTTPRouteTrigger

    create = HTTPRouteTrigger("POST", "/v1/orders")
"""

from ordergate.wire.triggers import http


__all__ = ("http",)
