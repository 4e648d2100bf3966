"""
Pydantic schemas for the envelope wire format.

These schemas define the API contract: camelCase field names,
``statusCode`` carrying the error code, and metadata members omitted
when they are not set. No business logic belongs here.
"""

from datetime import datetime
from typing import Any

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from response_wrapper.domain.models import Envelope


class WireModel(BaseModel):
    """Base schema: snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PaginationSchema(WireModel):
    """Pagination block of the metadata."""

    page: int
    page_size: int
    total_pages: int
    total_items: int
    has_next_page: bool
    has_previous_page: bool


class QuerySchema(WireModel):
    """Query statistics block of the metadata."""

    database_queries_count: int
    database_execution_time_ms: int
    cache_hits: int
    cache_misses: int
    executed_queries: list[str] | None = None


class MetadataSchema(WireModel):
    """Per-request metadata block."""

    request_id: str
    timestamp: datetime
    execution_time_ms: int | None = None
    version: str
    correlation_id: str | None = None
    path: str
    method: str
    pagination: PaginationSchema | None = None
    query: QuerySchema | None = None
    additional: dict[str, Any] | None = None


class EnvelopeSchema(WireModel):
    """The envelope as it is written to the wire.

    Attributes:
        success: Whether the request succeeded.
        data: Payload; always null on failure.
        message: Optional summary message.
        errors: Error messages; empty on success.
        error_code: Machine-readable code, serialized as ``statusCode``.
        metadata: Diagnostic metadata block.
    """

    success: bool
    data: Any = None
    message: str | None = None
    errors: list[str] = Field(default_factory=list)
    error_code: str | None = Field(default=None, alias="statusCode")
    metadata: MetadataSchema | None = None

    @classmethod
    def from_envelope(cls, envelope: Envelope) -> "EnvelopeSchema":
        """Convert a domain envelope, encoding payloads to JSON-safe values."""
        metadata = None
        if envelope.metadata is not None:
            metadata = MetadataSchema.model_validate(envelope.metadata)
            if metadata.additional is not None:
                metadata.additional = jsonable_encoder(metadata.additional)
        return cls(
            success=envelope.success,
            data=jsonable_encoder(envelope.data),
            message=envelope.message,
            errors=list(envelope.errors),
            error_code=envelope.error_code,
            metadata=metadata,
        )

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON body: top-level members always present,
        unset metadata members omitted."""
        body = self.model_dump(mode="json", by_alias=True, exclude={"metadata"})
        body["metadata"] = (
            self.metadata.model_dump(mode="json", by_alias=True, exclude_none=True)
            if self.metadata is not None
            else None
        )
        return body


class HealthResponse(WireModel):
    """Health check payload."""

    status: str
    version: str
