"""
Port interfaces (ABCs) for envelope extensions, plus opt-in markers
for results that carry their own status code, message or metadata.

Ports define the contracts that independent modules implement to
contribute to the envelope without coupling to each other.
Infrastructure adapters implement these interfaces; the pipeline
only holds references to them and invokes them.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from response_wrapper.domain.context import RequestContext
from response_wrapper.domain.models import Envelope

Clock = Callable[[], datetime]


class ResponseTransformer(ABC):
    """Reshapes a successful payload before it is wrapped.

    Transformers run in registration order; each receives the
    previous transformer's output.
    """

    @abstractmethod
    def can_transform(self, payload_type: type) -> bool:
        """Return True if this transformer applies to the payload type."""
        raise NotImplementedError

    @abstractmethod
    def transform(self, payload: Any, context: RequestContext) -> Any:
        """Return the transformed payload.

        Args:
            payload: The current payload.
            context: The request context.

        Returns:
            The payload handed to the next transformer.
        """
        raise NotImplementedError


class ResponseEnricher(ABC):
    """Post-processes a fully built envelope.

    Enrichers run in ascending ``order``. They may add response
    headers, touch the additional metadata map, or abort by raising.

    Attributes:
        order: Sort key; lower runs first.
    """

    order: int = 0

    @abstractmethod
    async def enrich(self, envelope: Envelope, context: RequestContext) -> None:
        """Augment the envelope in place."""
        raise NotImplementedError


class MetadataProvider(ABC):
    """Contributes namespaced keys to the additional metadata map.

    Every returned key is stored as ``"{name}_{key}"``.

    Attributes:
        name: Namespace prefix for the returned keys.
    """

    name: str = ""

    @abstractmethod
    async def get_metadata(self, context: RequestContext) -> dict[str, Any] | None:
        """Return metadata for this request, or None for nothing."""
        raise NotImplementedError


class HasStatusCode(ABC):
    """Opt-in marker for results that carry their own status code.

    Subclass it (or call ``HasStatusCode.register``) to have a non-empty
    ``status_code`` string lifted onto the envelope.

    Attributes:
        status_code: Application status code for the envelope.
    """

    status_code: str


class HasMessage(ABC):
    """Opt-in marker for results that carry their own envelope message.

    Attributes:
        message: Message shown at the envelope level.
    """

    message: str


class HasMetadata(ABC):
    """Opt-in marker for results that contribute additional metadata.

    Attributes:
        metadata: Entries merged into the additional metadata map.
    """

    metadata: Mapping[str, Any]
