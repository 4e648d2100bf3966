"""
Secure HTTP headers enricher.

Adds security-related headers to every envelope response:
- X-Content-Type-Options
- X-Frame-Options
- Referrer-Policy
- Content-Security-Policy
- X-XSS-Protection

No business logic. Pure cross-cutting concern, contributed through
the enricher port like any other extension.
"""

from response_wrapper.domain.context import RequestContext
from response_wrapper.domain.models import Envelope
from response_wrapper.domain.ports import ResponseEnricher

SECURE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'self'",
    "X-XSS-Protection": "1; mode=block",
}


class SecurityHeadersEnricher(ResponseEnricher):
    """Enricher that adds secure HTTP headers to envelope responses.

    Runs first so later enrichers may still override a header.
    Headers already set by an earlier stage are left alone.
    """

    order = 0

    async def enrich(self, envelope: Envelope, context: RequestContext) -> None:
        """Add the secure headers to the outgoing response."""
        for header_name, header_value in SECURE_HEADERS.items():
            context.response_headers.setdefault(header_name, header_value)
