"""
Envelope assembly.

Success path: transformers -> pagination detection -> envelope
assembly -> enrichers -> metadata providers.
Failure path: classification -> envelope assembly -> enrichers ->
metadata providers.

Input: a handler result or a caught exception, plus the RequestContext.
Output: an Envelope (and, on failure, its ClassificationResult).
Failure cases: PipelineError from an extension on the success path
propagates to the boundary, with the extensions' header and item
changes rolled back; the boundary then wraps it without running the
extensions again. On the failure path it is reclassified once.
"""

import logging
from collections.abc import Mapping
from typing import Any

from response_wrapper.application.classifier import (
    ClassificationResult,
    ExceptionClassifier,
)
from response_wrapper.application.metadata import MetadataBuilder
from response_wrapper.application.pagination import PaginationDetector
from response_wrapper.application.pipeline import ExtensionPipeline
from response_wrapper.domain.context import RequestContext, RequestTiming
from response_wrapper.domain.errors import PipelineError
from response_wrapper.domain.models import Envelope
from response_wrapper.domain.ports import HasMessage, HasMetadata, HasStatusCode

logger = logging.getLogger(__name__)


class EnvelopeBuilder:
    """Builds envelopes for both request paths.

    Args:
        metadata_builder: Assembles the metadata block.
        detector: Duck-typed pagination detector.
        classifier: Exception classifier.
        pipeline: Registered extensions.
        paginate: Whether pagination is hoisted out of results.
    """

    def __init__(
        self,
        metadata_builder: MetadataBuilder,
        detector: PaginationDetector,
        classifier: ExceptionClassifier,
        pipeline: ExtensionPipeline,
        paginate: bool = True,
    ) -> None:
        self._metadata = metadata_builder
        self._detector = detector
        self._classifier = classifier
        self._pipeline = pipeline
        self._paginate = paginate

    async def build_success(self, result: Any, context: RequestContext) -> Envelope:
        """Wrap a handler result.

        Raises:
            PipelineError: If an enricher or metadata provider fails.
        """
        payload = self._pipeline.transform(result, context)

        pagination = None
        data = payload
        if self._paginate:
            detection = self._detector.detect(payload)
            if detection.is_paginated:
                data = detection.items
                pagination = detection.pagination

        metadata = self._metadata.build(context, context.timing, pagination=pagination)
        envelope = Envelope.ok(data, metadata=metadata)
        _promote_annotations(payload, envelope)

        await self._finalize(envelope, context, context.timing)
        return envelope

    async def build_failure(
        self, exc: BaseException, context: RequestContext, timing: RequestTiming
    ) -> tuple[Envelope, ClassificationResult]:
        """Wrap an exception caught at the boundary.

        Args:
            exc: The caught exception.
            context: The request context.
            timing: Timing started at the boundary catch.

        Returns:
            The failed envelope and the classification behind it.
        """
        classification = self._classifier.classify(exc)
        self._log(exc, classification, context)
        envelope = self._failed_envelope(classification, context, timing)

        # An extension already failed for this request; it is not run again.
        if isinstance(exc, PipelineError):
            self._stamp_elapsed(envelope, timing)
            return envelope, classification

        try:
            await self._finalize(envelope, context, timing)
        except PipelineError as pipeline_exc:
            classification = self._classifier.classify(pipeline_exc)
            self._log(pipeline_exc, classification, context)
            envelope = self._failed_envelope(classification, context, timing)

        return envelope, classification

    def _failed_envelope(
        self,
        classification: ClassificationResult,
        context: RequestContext,
        timing: RequestTiming,
    ) -> Envelope:
        return Envelope.fail(
            classification.errors,
            message=classification.message,
            error_code=classification.error_code,
            metadata=self._metadata.build(context, timing, failed=True),
        )

    async def _finalize(
        self, envelope: Envelope, context: RequestContext, timing: RequestTiming
    ) -> None:
        headers = dict(context.response_headers)
        items = dict(context.items)
        try:
            await self._pipeline.enrich(envelope, context)
            await self._pipeline.collect_metadata(envelope, context)
        except PipelineError:
            # Drop whatever the extensions contributed before failing.
            context.response_headers.clear()
            context.response_headers.update(headers)
            context.items.clear()
            context.items.update(items)
            raise
        self._stamp_elapsed(envelope, timing)

    @staticmethod
    def _stamp_elapsed(envelope: Envelope, timing: RequestTiming) -> None:
        metadata = envelope.metadata
        if metadata is not None and metadata.execution_time_ms is not None:
            metadata.execution_time_ms = timing.elapsed_ms()

    @staticmethod
    def _log(
        exc: BaseException, classification: ClassificationResult, context: RequestContext
    ) -> None:
        if classification.log_as_error:
            logger.error(
                "Error processing request %s: %s (%s)",
                context.request_id,
                classification.message,
                type(exc).__name__,
                exc_info=exc,
            )
        else:
            logger.info(
                "Request %s resulted in expected error: %s",
                context.request_id,
                classification.error_code,
            )


def _promote_annotations(payload: Any, envelope: Envelope) -> None:
    # Only results that opt in through the marker ports are promoted.
    if isinstance(payload, HasStatusCode):
        status_code = getattr(payload, "status_code", None)
        if isinstance(status_code, str) and status_code:
            envelope.error_code = status_code

    if isinstance(payload, HasMessage):
        message = getattr(payload, "message", None)
        if isinstance(message, str) and message:
            envelope.message = message

    if isinstance(payload, HasMetadata) and envelope.metadata is not None:
        extra = getattr(payload, "metadata", None)
        if isinstance(extra, Mapping):
            for key, value in extra.items():
                envelope.metadata.add(str(key), value)
