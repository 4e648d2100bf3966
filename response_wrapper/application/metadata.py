"""
Response metadata assembly.

Builds the per-request diagnostic block (request id, timestamp,
version, timing, correlation, query statistics, additional context)
from the explicit RequestContext. Every optional block honours its
feature toggle; additional context is always collected on failures.
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from response_wrapper.core.config import Settings
from response_wrapper.domain.context import QUERY_STATS_KEY, RequestContext, RequestTiming
from response_wrapper.domain.models import PaginationMetadata, QueryMetadata, ResponseMetadata
from response_wrapper.domain.ports import Clock

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(timezone.utc)


class MetadataBuilder:
    """Assembles ResponseMetadata for one request.

    Args:
        settings: Feature toggles and header names.
        clock: Timestamp source; injectable so tests are deterministic.
    """

    def __init__(self, settings: Settings, clock: Clock | None = None) -> None:
        self._settings = settings
        self._clock = clock or utc_now

    def build(
        self,
        context: RequestContext,
        timing: RequestTiming,
        *,
        failed: bool = False,
        pagination: PaginationMetadata | None = None,
    ) -> ResponseMetadata:
        """Build the metadata block.

        Args:
            context: The request context.
            timing: Timing state to measure execution time from.
            failed: True on the failure path.
            pagination: Pagination block hoisted from the result, if any.

        Returns:
            A ResponseMetadata owned by this request only.
        """
        settings = self._settings
        metadata = ResponseMetadata(
            request_id=context.request_id,
            timestamp=self._clock(),
            path=context.path,
            method=context.method,
            version=self.resolve_version(context),
        )

        if settings.enable_execution_time_tracking:
            metadata.execution_time_ms = timing.elapsed_ms()

        if settings.enable_correlation_id:
            metadata.correlation_id = self.resolve_correlation_id(context)

        if settings.enable_pagination_metadata:
            metadata.pagination = pagination

        if settings.enable_query_statistics:
            metadata.query = self.extract_query_metadata(context)

        if failed or settings.enable_additional_metadata:
            metadata.additional = self.extract_additional(context)

        return metadata

    def resolve_version(self, context: RequestContext) -> str:
        """Header, then query parameter, then the configured default."""
        return (
            context.header(self._settings.api_version_header)
            or context.query_param(self._settings.api_version_query_param)
            or self._settings.default_api_version
        )

    def resolve_correlation_id(self, context: RequestContext) -> str:
        """Inbound header, then ambient trace id, then a fresh id.

        The resolved id is remembered on the context so both paths of
        the same request report the same value.
        """
        cached = context.items.get("correlation_id")
        if cached:
            return cached
        correlation_id = (
            context.header(self._settings.correlation_id_header)
            or context.trace_id
            or str(uuid4())
        )
        context.items["correlation_id"] = correlation_id
        return correlation_id

    @staticmethod
    def extract_query_metadata(context: RequestContext) -> QueryMetadata | None:
        stats = context.items.get(QUERY_STATS_KEY)
        if not isinstance(stats, Mapping):
            return None
        try:
            return QueryMetadata.from_stats(stats)
        except (TypeError, ValueError):
            logger.warning(
                "Ignoring malformed query statistics for request %s", context.request_id
            )
            return None

    def extract_additional(self, context: RequestContext) -> dict[str, Any] | None:
        additional: dict[str, Any] = {}

        if context.content_length is not None:
            additional["request_size_bytes"] = context.content_length

        user_agent = context.header("User-Agent")
        if user_agent:
            additional["user_agent"] = user_agent

        if context.client_host:
            additional["client_ip"] = context.client_host

        # Header names arrive lower-cased and are echoed that way.
        prefix = self._settings.custom_header_prefix.lower()
        for name, value in context.headers.items():
            if name.startswith(prefix):
                additional[name] = value

        if context.user_name:
            additional["authenticated_user"] = context.user_name

        return additional or None
