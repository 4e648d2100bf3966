"""
Shared module package.

Contains cross-cutting concerns used across layers:
- Logging configuration
- Security headers (as an envelope enricher)
- Rate limiting
"""
