"""
Trace context metadata.

Parses the W3C ``traceparent`` header of the inbound request and
reports it under the ``telemetry`` namespace of the additional
metadata. No exporter is involved; spans are owned by whatever
tracing middleware the application runs.
"""

import re
from dataclasses import dataclass
from typing import Any

from response_wrapper.domain.context import RequestContext
from response_wrapper.domain.ports import MetadataProvider

TRACEPARENT_PATTERN = re.compile(
    r"^(?P<version>[0-9a-f]{2})-(?P<trace_id>[0-9a-f]{32})-"
    r"(?P<span_id>[0-9a-f]{16})-(?P<flags>[0-9a-f]{2})$"
)
SAMPLED_FLAG = 0x01


@dataclass(frozen=True)
class TraceParent:
    """A parsed ``traceparent`` header.

    Attributes:
        version: Header format version.
        trace_id: 32 hex characters identifying the trace.
        span_id: 16 hex characters identifying the caller's span.
        flags: Trace flags byte.
    """

    version: str
    trace_id: str
    span_id: str
    flags: int

    @property
    def sampled(self) -> bool:
        return bool(self.flags & SAMPLED_FLAG)


def parse_traceparent(header: str | None) -> TraceParent | None:
    """Parse a ``traceparent`` header value.

    Args:
        header: Header value such as ``00-<trace id>-<span id>-01``.

    Returns:
        The parsed header, or None if it is missing or malformed.
        All-zero trace or span ids are invalid.
    """
    if not header:
        return None
    match = TRACEPARENT_PATTERN.match(header.strip().lower())
    if match is None or match["version"] == "ff":
        return None
    if set(match["trace_id"]) == {"0"} or set(match["span_id"]) == {"0"}:
        return None
    return TraceParent(
        version=match["version"],
        trace_id=match["trace_id"],
        span_id=match["span_id"],
        flags=int(match["flags"], 16),
    )


class TraceMetadataProvider(MetadataProvider):
    """Reports the inbound trace context as ``telemetry_*`` metadata."""

    name = "telemetry"

    async def get_metadata(self, context: RequestContext) -> dict[str, Any] | None:
        trace = parse_traceparent(context.header("traceparent"))
        if trace is None:
            return None
        metadata: dict[str, Any] = {
            "trace_id": trace.trace_id,
            "parent_span_id": trace.span_id,
            "sampled": trace.sampled,
        }
        trace_state = context.header("tracestate")
        if trace_state:
            metadata["trace_state"] = trace_state
        return metadata
