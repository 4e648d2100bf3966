"""
response_wrapper: uniform response envelopes for FastAPI applications.

Wraps whatever a route handler returns into a single envelope
(success flag, data, errors, metadata) and funnels every unhandled
failure into that same envelope with consistent status codes and
machine-readable error codes.

Layers:
    - domain: Envelope and metadata models, error taxonomy, extension ports (ABCs).
    - application: Pagination detection, exception classification,
      metadata building, extension pipeline, envelope assembly.
    - infrastructure: Extension adapters (field selection, masking, ETag, tracing).
    - interfaces: FastAPI route class, error middleware, wire schemas.
    - shared: Cross-cutting concerns (logging, security).
"""

from response_wrapper.domain.ports import HasMessage, HasMetadata, HasStatusCode
from response_wrapper.interfaces.install import install_response_wrapper
from response_wrapper.interfaces.route import ResponseWrapperRoute, skip_response_wrapper
from response_wrapper.interfaces.wrapper import ResponseWrapper

__all__ = [
    "HasMessage",
    "HasMetadata",
    "HasStatusCode",
    "ResponseWrapper",
    "ResponseWrapperRoute",
    "install_response_wrapper",
    "skip_response_wrapper",
]
