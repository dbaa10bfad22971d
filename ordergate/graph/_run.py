"""
Fluent runner — sugar over nodnod.

Discovers the nodes reachable from a target and runs them in one scope,
so every node executes at most once per run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, cast
from collections.abc import Callable, Coroutine

from nodnod import Scope, Value, EventLoopAgent, Node


type _Runner = Callable[[Scope, dict[type[Any], Scope]], Coroutine[Any, Any, None]]


@dataclass(frozen=True, slots=True)
class Run[T]:
    """
    Awaitable run of one target node.

    Example:
        node = await run(DecisionNode).inject(GateSpec(key, token, store, policy))
    """

    target: type[T]
    inputs: tuple[object, ...] = ()

    def inject(self, value: object) -> Run[T]:
        """Provide a value; nodes ask for it by its runtime type."""
        return Run(self.target, (*self.inputs, value))

    def __await__(self) -> Any:
        return self._execute().__await__()

    async def _execute(self) -> T:
        agent = EventLoopAgent.build({cast(type[Node[Any, Any]], self.target)})

        async with Scope(detail=f"run:{self.target.__name__}") as scope:
            for value in self.inputs:
                scope.push(Value(type(value), value))

            runner = cast(_Runner, getattr(agent, "run"))
            await runner(scope, {})

            produced = scope.get(self.target)
            if produced is None:
                raise LookupError(f"{self.target.__name__} was not produced")
            return cast(T, produced.value)


def run[T](target: type[T]) -> Run[T]:
    """Run a node with auto-discovery."""
    return Run(target)


__all__ = ("Run", "run")
