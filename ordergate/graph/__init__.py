"""
Graph — lazy decision graphs on nodnod.

    from ordergate import graph as G

    @G.node
    class ReserveNode:
        @classmethod
        async def __compose__(cls, spec: GateSpec) -> "ReserveNode":
            return cls(await spec.store.reserve(spec.key, spec.token, spec.policy.pending_ttl))

    node = await G.run(DecisionNode).inject(spec)
"""

from nodnod import scalar_node as node

from ordergate.graph._run import Run, run

__all__ = (
    "node",
    "run",
    "Run",
)
