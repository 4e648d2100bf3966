"""
Request-scoped context.

A RequestContext is created once per request and passed explicitly
through every stage (transformers, builder, enrichers, providers).
It replaces ambient per-request state: anything a collaborator wants
the core to see, such as query statistics, goes into ``items``.
"""

import time
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

QUERY_STATS_KEY = "query_stats"


@dataclass
class RequestTiming:
    """Timing state for one request.

    Attributes:
        started_at: ``time.perf_counter()`` reading at start.
    """

    started_at: float = field(default_factory=time.perf_counter)

    def elapsed_ms(self) -> int:
        """Return whole milliseconds since the timing started."""
        return int((time.perf_counter() - self.started_at) * 1000)


@dataclass
class RequestContext:
    """Everything the core needs to know about the current request.

    Attributes:
        path: Request path.
        method: HTTP method, upper case.
        headers: Inbound headers; keys are stored lower case.
        query_params: Inbound query parameters.
        client_host: Remote address, if known.
        content_length: Declared request body size, if any.
        user_name: Authenticated principal name, if any.
        trace_id: Ambient trace identifier (W3C trace id), if any.
        items: Request-scoped key/value bag shared with collaborators.
        response_headers: Headers to add to the outgoing response.
        request_id: Freshly generated identifier for this request.
        timing: Timing state, started when the context is created.
    """

    path: str
    method: str
    headers: dict[str, str] = field(default_factory=dict)
    query_params: dict[str, str] = field(default_factory=dict)
    client_host: str | None = None
    content_length: int | None = None
    user_name: str | None = None
    trace_id: str | None = None
    items: dict[str, Any] = field(default_factory=dict)
    response_headers: dict[str, str] = field(default_factory=dict)
    request_id: str = field(default_factory=lambda: str(uuid4()))
    timing: RequestTiming = field(default_factory=RequestTiming)

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        self.headers = {name.lower(): value for name, value in self.headers.items()}

    def header(self, name: str) -> str | None:
        """Return an inbound header value, case-insensitively."""
        return self.headers.get(name.lower())

    def query_param(self, name: str) -> str | None:
        return self.query_params.get(name)
