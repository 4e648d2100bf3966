"""
Domain layer package.

Contains the envelope data model, the error taxonomy and the
extension port interfaces. This layer has ZERO framework dependencies.
No FastAPI imports, no IO, no side effects.
"""
