"""
Extension pipeline.

Runs the three extension points at their stages:
transformers before wrapping (chained, registration order),
enrichers after the envelope is built (ascending order, awaited one
at a time), metadata providers last (namespaced merge).

Extension failures surface as PipelineError so the boundary can
classify them through the catch-all exactly once. Cancellation
(BaseException) is never intercepted.
"""

import logging
from collections.abc import Iterable
from typing import Any

from response_wrapper.domain.context import RequestContext
from response_wrapper.domain.errors import PipelineError
from response_wrapper.domain.models import Envelope
from response_wrapper.domain.ports import (
    MetadataProvider,
    ResponseEnricher,
    ResponseTransformer,
)

logger = logging.getLogger(__name__)


class ExtensionPipeline:
    """Holds and invokes the registered extensions.

    Args:
        transformers: Payload transformers, in registration order.
        enrichers: Envelope enrichers; sorted by ``order`` (stable).
        providers: Metadata providers.
    """

    def __init__(
        self,
        transformers: Iterable[ResponseTransformer] = (),
        enrichers: Iterable[ResponseEnricher] = (),
        providers: Iterable[MetadataProvider] = (),
    ) -> None:
        self._transformers = list(transformers)
        self._enrichers = sorted(enrichers, key=lambda enricher: enricher.order)
        self._providers = list(providers)
        for provider in self._providers:
            if not provider.name:
                raise ValueError(f"{type(provider).__name__} has no name")

    @property
    def enrichers(self) -> list[ResponseEnricher]:
        return list(self._enrichers)

    def transform(self, payload: Any, context: RequestContext) -> Any:
        """Run applicable transformers as a chain."""
        for transformer in self._transformers:
            if not transformer.can_transform(type(payload)):
                continue
            payload = transformer.transform(payload, context)
        return payload

    async def enrich(self, envelope: Envelope, context: RequestContext) -> None:
        """Run enrichers in ascending order, one after the other.

        Raises:
            PipelineError: If an enricher raises.
        """
        for enricher in self._enrichers:
            try:
                await enricher.enrich(envelope, context)
            except Exception as exc:
                name = type(enricher).__name__
                logger.error(
                    "Enricher %s failed for request %s", name, context.request_id
                )
                raise PipelineError("enricher", name) from exc

    async def collect_metadata(self, envelope: Envelope, context: RequestContext) -> None:
        """Merge provider metadata into the additional map as ``{name}_{key}``.

        Raises:
            PipelineError: If a provider raises.
        """
        if envelope.metadata is None:
            return
        for provider in self._providers:
            try:
                contributed = await provider.get_metadata(context)
            except Exception as exc:
                logger.error(
                    "Metadata provider %s failed for request %s",
                    provider.name,
                    context.request_id,
                )
                raise PipelineError("metadata_provider", provider.name) from exc
            for key, value in (contributed or {}).items():
                envelope.metadata.add(f"{provider.name}_{key}", value)
