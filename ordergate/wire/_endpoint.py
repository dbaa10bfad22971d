from __future__ import annotations

from dataclasses import dataclass, field

from ordergate.wire._types import Handler, Trigger


@dataclass(slots=True)
class Endpoint:
    handler: Handler
    triggers: list[Trigger] = field(default_factory=list[Trigger])

    @classmethod
    def from_handler(cls, handler: Handler) -> Endpoint:
        return cls(handler=handler)

    def expose(self, trigger: Trigger) -> Endpoint:
        return Endpoint(handler=self.handler, triggers=[*self.triggers, trigger])


def endpoint(handler: Handler) -> Endpoint:
    return Endpoint.from_handler(handler)
