"""
Envelope data model.

Plain dataclasses describing the uniform response wrapper and its
metadata blocks. The interfaces layer converts them to the wire
schema; nothing here knows about JSON or HTTP.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from response_wrapper.domain.errors import EnvelopeSealedError


@dataclass(frozen=True)
class PaginationMetadata:
    """Pagination block hoisted out of a paginated result.

    Attributes:
        page: Current page number.
        page_size: Number of items per page.
        total_pages: Number of pages available.
        total_items: Number of items across all pages.
        has_next_page: Whether a following page exists.
        has_previous_page: Whether a preceding page exists.
    """

    page: int
    page_size: int
    total_pages: int
    total_items: int
    has_next_page: bool
    has_previous_page: bool


@dataclass(frozen=True)
class QueryMetadata:
    """Data-access statistics for one request.

    Attributes:
        database_queries_count: Number of database queries executed.
        database_execution_time_ms: Total database time in milliseconds.
        cache_hits: Number of cache hits.
        cache_misses: Number of cache misses.
        executed_queries: Optional list of executed statements.
    """

    database_queries_count: int = 0
    database_execution_time_ms: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    executed_queries: list[str] | None = None

    @classmethod
    def from_stats(cls, stats: Mapping[str, Any]) -> "QueryMetadata":
        """Build the block from the bag filled by a data-access interceptor."""
        executed = stats.get("executed_queries")
        return cls(
            database_queries_count=int(stats.get("queries_count", 0)),
            database_execution_time_ms=int(stats.get("execution_time_ms", 0)),
            cache_hits=int(stats.get("cache_hits", 0)),
            cache_misses=int(stats.get("cache_misses", 0)),
            executed_queries=list(executed) if executed is not None else None,
        )


@dataclass
class ResponseMetadata:
    """Per-request diagnostic context attached to every envelope.

    Owned by exactly one request; never shared.
    """

    request_id: str
    timestamp: datetime
    path: str
    method: str
    version: str
    execution_time_ms: int | None = None
    correlation_id: str | None = None
    pagination: PaginationMetadata | None = None
    query: QueryMetadata | None = None
    additional: dict[str, Any] | None = None

    def add(self, key: str, value: Any) -> None:
        """Set one key in the additional map, creating it if needed."""
        if self.additional is None:
            self.additional = {}
        self.additional[key] = value


@dataclass
class Envelope:
    """Uniform response wrapper.

    Invariants: ``success is False`` implies ``data is None`` and
    ``errors`` is never None. Once sealed, the envelope rejects any
    attribute assignment.
    """

    success: bool
    data: Any = None
    message: str | None = None
    errors: list[str] = field(default_factory=list)
    error_code: str | None = None
    metadata: ResponseMetadata | None = None
    _sealed: bool = field(default=False, init=False, repr=False, compare=False)

    def __setattr__(self, name: str, value: Any) -> None:
        if self.__dict__.get("_sealed"):
            raise EnvelopeSealedError(f"envelope is sealed; cannot set {name!r}")
        if name == "errors" and value is None:
            value = []
        if name == "data" and value is not None and self.__dict__.get("success") is False:
            raise ValueError("a failed envelope cannot carry data")
        if name == "success" and value is False and self.__dict__.get("data") is not None:
            raise ValueError("clear data before marking the envelope as failed")
        super().__setattr__(name, value)

    @classmethod
    def ok(
        cls,
        data: Any,
        message: str | None = None,
        metadata: ResponseMetadata | None = None,
    ) -> "Envelope":
        """Build a successful envelope."""
        return cls(success=True, data=data, message=message, metadata=metadata)

    @classmethod
    def fail(
        cls,
        errors: list[str],
        message: str | None = None,
        error_code: str | None = None,
        metadata: ResponseMetadata | None = None,
    ) -> "Envelope":
        """Build a failed envelope. Data is always None."""
        return cls(
            success=False,
            errors=list(errors),
            message=message,
            error_code=error_code,
            metadata=metadata,
        )

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        """Freeze the envelope before it is written to the wire."""
        object.__setattr__(self, "_sealed", True)


@dataclass(frozen=True)
class TypeShapeDescriptor:
    """Discovered pagination shape of one concrete result type.

    Each attribute holds the member name that resolved for that field.
    """

    result_type: type
    items: str
    page: str
    page_size: str
    total_pages: str
    total_items: str
    has_next_page: str
    has_previous_page: str


# Cached for types that were inspected and found not to be paginated.
NOT_PAGINATED = object()
