"""Contract between the network rules and an interception backend.

A backend emits two events for every outbound request it sees while enabled:

``connect(connection, info)``
    Before the request leaves the process.  A handler with a rule for the
    connection may set ``connection.delay`` (milliseconds) to hold it, or call
    ``connection.intercept(owner)`` to claim it for the request stage.
    Handlers without a rule leave the connection alone.  A connection nobody
    claimed goes out untouched once any delay has elapsed.

``request(request, response)``
    Only for claimed connections.  The claiming handlers answer through
    ``response``; the first answer wins.  A request no handler answered gets
    ``UNMATCHED_STATUS`` with ``UNMATCHED_BODY``.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from ltbc.schemas import FailReasonType

CONNECT = "connect"
REQUEST = "request"

UNMATCHED_STATUS = 503
UNMATCHED_BODY = "host rule not defined in the LTBC correctly"

Handler = Callable[..., Any]


@dataclass(frozen=True)
class ConnectionInfo:
    protocol: str
    hostname: str
    host: str
    href: str
    port: int | None = None
    path: str = "/"


class Connection:
    def __init__(self, info: ConnectionInfo) -> None:
        self.info = info
        self.delay: float = 0
        self.claimed_by: list[Any] = []

    def hold(self, delay: float) -> None:
        """Delay the connection by *delay* ms; the longest hold wins."""
        self.delay = max(self.delay, delay)

    def intercept(self, owner: Any = None) -> None:
        self.claimed_by.append(owner)

    def is_claimed_by(self, owner: Any) -> bool:
        return any(claimer is owner for claimer in self.claimed_by)

    @property
    def intercepted(self) -> bool:
        return bool(self.claimed_by)

    @property
    def bypassed(self) -> bool:
        return not self.claimed_by and not self.delay


@dataclass
class InterceptedRequest:
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    content: bytes = b""
    connection: Connection | None = None

    @property
    def host(self) -> str:
        """Host header without the port."""
        return self.headers.get("host", "").split(":")[0]


class ResponseHandle:
    def __init__(self) -> None:
        self.status_code = 200
        self.headers: dict[str, str] = {}
        self.body = b""
        self.finished = False
        self.aborted: FailReasonType | None = None

    def end(self, body: str | bytes = b"") -> None:
        self.body = body.encode() if isinstance(body, str) else body
        self.finished = True

    def abort(self, reason: FailReasonType) -> None:
        self.aborted = reason
        self.finished = True


class InterceptionBackend(Protocol):
    def enable(self) -> None: ...

    def disable(self) -> None: ...

    def on(self, event: str, handler: Handler) -> None: ...

    def off(self, event: str, handler: Handler) -> None: ...


class EventEmitter:
    """Synchronous, ordered event dispatch shared by concrete backends."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Handler]] = defaultdict(list)

    def on(self, event: str, handler: Handler) -> None:
        self._listeners[event].append(handler)

    def off(self, event: str, handler: Handler) -> None:
        if handler in self._listeners[event]:
            self._listeners[event].remove(handler)

    def remove_all_listeners(self, event: str | None = None) -> None:
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    def listener_count(self, event: str) -> int:
        return len(self._listeners[event])

    def emit(self, event: str, *args: Any) -> bool:
        handlers = list(self._listeners[event])
        for handler in handlers:
            handler(*args)
        return bool(handlers)
