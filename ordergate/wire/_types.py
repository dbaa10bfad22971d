from collections.abc import Awaitable, Callable

from ordergate._types import HttpRequest, HttpResponse
from ordergate.wire.triggers.http import HTTPRouteTrigger


type Handler = Callable[[HttpRequest], Awaitable[HttpResponse]]
type Trigger = HTTPRouteTrigger
