"""Security concerns: secure response headers and rate limiting."""
