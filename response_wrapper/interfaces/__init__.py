"""
Interfaces layer package.

FastAPI/Starlette adapters: the wrapping route class (success path),
the error boundary middleware (failure path) and the wire schemas.
"""
