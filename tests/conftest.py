"""
Shared fixtures for the response wrapper tests.

Factories are exposed as fixtures so test modules never import
from each other.
"""

from datetime import datetime, timezone

import pytest

from response_wrapper.application.classifier import ExceptionClassifier
from response_wrapper.application.envelope import EnvelopeBuilder
from response_wrapper.application.metadata import MetadataBuilder
from response_wrapper.application.pagination import PaginationDetector, TypeShapeCache
from response_wrapper.application.pipeline import ExtensionPipeline
from response_wrapper.core.config import Settings
from response_wrapper.domain.context import RequestContext

FIXED_NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def make_context():
    """Factory building a RequestContext without a live request."""

    def factory(
        path: str = "/users",
        method: str = "GET",
        headers: dict[str, str] | None = None,
        query_params: dict[str, str] | None = None,
        **kwargs,
    ) -> RequestContext:
        return RequestContext(
            path=path,
            method=method,
            headers=headers or {},
            query_params=query_params or {},
            **kwargs,
        )

    return factory


@pytest.fixture
def context(make_context) -> RequestContext:
    return make_context()


@pytest.fixture
def make_builder():
    """Factory building an EnvelopeBuilder with a private cache and fixed clock."""

    def factory(
        settings: Settings | None = None,
        *,
        transformers=(),
        enrichers=(),
        providers=(),
        paginate: bool = True,
    ) -> EnvelopeBuilder:
        return EnvelopeBuilder(
            MetadataBuilder(settings or Settings(), clock=lambda: FIXED_NOW),
            PaginationDetector(TypeShapeCache()),
            ExceptionClassifier(),
            ExtensionPipeline(transformers, enrichers, providers),
            paginate=paginate,
        )

    return factory


@pytest.fixture
def shape_cache() -> TypeShapeCache:
    return TypeShapeCache()


@pytest.fixture
def detector(shape_cache: TypeShapeCache) -> PaginationDetector:
    return PaginationDetector(shape_cache)
