"""
ResponseWrapper: the object the HTTP entry points talk to.

Holds the configured core (classifier, detector, metadata builder,
extension pipeline) and turns handler results and caught exceptions
into envelope responses. Stored on ``app.state.response_wrapper`` by
install_response_wrapper.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import Receive, Scope, Send

from response_wrapper.application.classifier import ErrorMessages, ExceptionClassifier
from response_wrapper.application.envelope import EnvelopeBuilder
from response_wrapper.application.metadata import MetadataBuilder
from response_wrapper.application.pagination import PaginationDetector
from response_wrapper.application.pipeline import ExtensionPipeline
from response_wrapper.core.config import Settings, settings as default_settings
from response_wrapper.domain.context import RequestContext, RequestTiming
from response_wrapper.domain.models import Envelope
from response_wrapper.domain.ports import (
    Clock,
    MetadataProvider,
    ResponseEnricher,
    ResponseTransformer,
)
from response_wrapper.interfaces.context import get_request_context
from response_wrapper.interfaces.schemas import EnvelopeSchema

logger = logging.getLogger(__name__)

STATE_ATTR = "response_wrapper"


class EnvelopeResponse(JSONResponse):
    """JSON response for envelopes.

    A failure while writing the body (for example a reset connection)
    is logged and not re-raised, so it never masks the original error.
    """

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        except Exception:
            logger.error(
                "Failed to write envelope response for %s", scope.get("path"), exc_info=True
            )


class ResponseWrapper:
    """Configured envelope core for one application.

    Args:
        settings: Feature toggles; defaults to the environment settings.
        clock: Timestamp source for metadata.
        messages: Message table for classified errors.
        transformers: Payload transformers, in order.
        enrichers: Envelope enrichers.
        providers: Metadata providers.
        excluded_types: Result types that are returned unwrapped.
        detector: Pagination detector; defaults to one backed by the
            process-wide shape cache.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        clock: Clock | None = None,
        messages: ErrorMessages | None = None,
        transformers: Iterable[ResponseTransformer] = (),
        enrichers: Iterable[ResponseEnricher] = (),
        providers: Iterable[MetadataProvider] = (),
        excluded_types: Iterable[type] = (),
        detector: PaginationDetector | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.classifier = ExceptionClassifier(messages)
        self.detector = detector or PaginationDetector()
        self.pipeline = ExtensionPipeline(transformers, enrichers, providers)
        self.metadata_builder = MetadataBuilder(self.settings, clock)
        self.builder = EnvelopeBuilder(
            self.metadata_builder,
            self.detector,
            self.classifier,
            self.pipeline,
            paginate=self.settings.enable_pagination_metadata,
        )
        self.excluded_types = tuple(excluded_types)

    def wraps_success(self, request: Request) -> bool:
        return self.settings.wrap_success_responses and not self.settings.is_excluded_path(
            request.url.path
        )

    def wraps_errors(self, request: Request) -> bool:
        return self.settings.wrap_error_responses and not self.settings.is_excluded_path(
            request.url.path
        )

    def is_excluded_type(self, result: Any) -> bool:
        return bool(self.excluded_types) and isinstance(result, self.excluded_types)

    def context_for(self, request: Request) -> RequestContext:
        return get_request_context(request)

    async def wrap_result(
        self, result: Any, context: RequestContext, status_code: int
    ) -> Any:
        """Turn a handler result into an envelope response.

        Raw Starlette responses and excluded types are returned as-is.

        Raises:
            PipelineError: If an enricher or metadata provider fails.
        """
        if isinstance(result, Response) or self.is_excluded_type(result):
            return result
        if isinstance(result, Envelope):
            envelope = result
        else:
            envelope = await self.builder.build_success(result, context)
        return self.render(envelope, status_code, context)

    async def handle_exception(
        self,
        request: Request,
        exc: BaseException,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        """Failure path: classify and wrap an exception caught at the boundary.

        Args:
            request: The failing request.
            exc: The caught exception.
            headers: Extra headers to send (e.g. from an HTTPException).

        Returns:
            The error envelope response.
        """
        timing = RequestTiming()
        context = self.context_for(request)
        if headers:
            context.response_headers.update(headers)
        envelope, classification = await self.builder.build_failure(exc, context, timing)
        return self.render(envelope, classification.http_status, context)

    @staticmethod
    def render(envelope: Envelope, status_code: int, context: RequestContext) -> Response:
        """Seal the envelope and serialize it."""
        envelope.seal()
        body = EnvelopeSchema.from_envelope(envelope).to_wire()
        return EnvelopeResponse(
            content=body,
            status_code=status_code,
            headers=dict(context.response_headers),
        )


def get_response_wrapper(request: Request) -> ResponseWrapper | None:
    """Return the wrapper installed on the request's application, if any."""
    return getattr(request.app.state, STATE_ATTR, None)
