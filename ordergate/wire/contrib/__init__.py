"""
Contrib — integrations with concrete runtimes.

    from ordergate.wire.contrib import fastapi, apigw

    fapp = fastapi.from_application(app)
    adapter = apigw.ProxyAdapter(orchestrator.handle)
"""

from . import apigw, fastapi

__all__ = ("apigw", "fastapi")
