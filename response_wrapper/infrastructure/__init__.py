"""
Infrastructure layer: extension adapters.

Concrete transformers, enrichers and metadata providers implementing
the ports defined in the domain layer.
"""
