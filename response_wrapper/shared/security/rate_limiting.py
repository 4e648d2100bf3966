"""
Rate limiting configuration and setup.

Uses slowapi to enforce per-endpoint rate limits.
Exceeded limits raise RateLimitExceeded, an HTTPException subclass,
which the error handlers turn into a TOO_MANY_REQUESTS envelope.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from response_wrapper.core.config import settings

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit_default])
