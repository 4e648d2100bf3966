"""
RequestContext construction from Starlette requests.

One context is created per request and stored in the request state,
so the success path and the failure path of the same request share
its request id, correlation id and collaborator-populated items.
"""

from starlette.requests import Request

from response_wrapper.domain.context import RequestContext
from response_wrapper.infrastructure.telemetry import parse_traceparent

STATE_KEY = "response_wrapper_context"


def parse_trace_id(traceparent: str | None) -> str | None:
    """Extract the trace id from a W3C ``traceparent`` header.

    Returns:
        The 32-character trace id, or None if the header is malformed.
    """
    trace = parse_traceparent(traceparent)
    return trace.trace_id if trace is not None else None


def _user_name(request: Request) -> str | None:
    user = request.scope.get("user")
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    return getattr(user, "display_name", None) or None


def _content_length(request: Request) -> int | None:
    raw = request.headers.get("content-length")
    if raw is None or not raw.isdigit():
        return None
    return int(raw)


def build_request_context(request: Request) -> RequestContext:
    """Create a RequestContext snapshot of the inbound request."""
    return RequestContext(
        path=request.url.path,
        method=request.method,
        headers=dict(request.headers),
        query_params=dict(request.query_params),
        client_host=request.client.host if request.client else None,
        content_length=_content_length(request),
        user_name=_user_name(request),
        trace_id=parse_trace_id(request.headers.get("traceparent")),
    )


def get_request_context(request: Request) -> RequestContext:
    """Return the context of this request, creating it on first use."""
    context = getattr(request.state, STATE_KEY, None)
    if context is None:
        context = build_request_context(request)
        setattr(request.state, STATE_KEY, context)
    return context
