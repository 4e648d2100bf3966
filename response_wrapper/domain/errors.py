"""
Error taxonomy for wrapped APIs.

Every error that handlers may raise to produce a specific envelope
is defined here. Each error class is tagged with an ErrorCategory;
the classifier maps categories to HTTP status codes and error codes
through an explicit rule table, so new kinds of error are added by
extending the table rather than adding new except clauses.
No framework imports allowed.
"""

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Classification tag carried by every ApplicationError."""

    APPLICATION = "application"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    BAD_REQUEST = "bad_request"
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    SERVICE_UNAVAILABLE = "service_unavailable"
    BUSINESS_RULE_VIOLATION = "business_rule_violation"
    CUSTOM_STATUS = "custom_status"
    UNEXPECTED = "unexpected"


class ApplicationError(Exception):
    """Base error for all errors that map to a well-defined envelope.

    Raised directly, it is an explicit application error: its status,
    code and message are used verbatim and it is logged at error
    severity. Subclasses tag a named category instead.

    Attributes:
        message: Human-readable message, exposed to the client.
        code: Explicit machine-readable error code, or None to use
            the category's fallback code.
        http_status: HTTP status for explicit application errors.
    """

    category: ErrorCategory = ErrorCategory.APPLICATION
    http_status: int = 500

    def __init__(
        self,
        message: str,
        code: str | None = None,
        *,
        http_status: int | None = None,
    ) -> None:
        self.message = message
        self.code = code
        if http_status is not None:
            self.http_status = http_status
        super().__init__(self.message)


class ValidationError(ApplicationError):
    """Raised when request input fails validation.

    Attributes:
        errors: Field name to list of messages, in insertion order.
    """

    category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str = "One or more validation errors occurred.",
        code: str | None = None,
        errors: Mapping[str, Iterable[str]] | None = None,
    ) -> None:
        super().__init__(message, code)
        self.errors: dict[str, list[str]] = {
            field: list(messages) for field, messages in (errors or {}).items()
        }


class NotFoundError(ApplicationError):
    """Raised when a requested resource does not exist.

    ``NotFoundError("User", 42)`` produces "User (42) was not found.";
    ``NotFoundError("No such invoice")`` uses the message as given.
    """

    category = ErrorCategory.NOT_FOUND

    def __init__(
        self, name: str, key: Any | None = None, code: str | None = None
    ) -> None:
        message = name if key is None else f"{name} ({key}) was not found."
        super().__init__(message, code)
        self.key = key


class ConflictError(ApplicationError):
    """Raised when the request conflicts with the current resource state."""

    category = ErrorCategory.CONFLICT


class UnauthorizedError(ApplicationError):
    """Raised when the caller is not authenticated."""

    category = ErrorCategory.UNAUTHORIZED


class ForbiddenError(ApplicationError):
    """Raised when the caller is authenticated but not allowed."""

    category = ErrorCategory.FORBIDDEN


class BadRequestError(ApplicationError):
    """Raised when the request is malformed."""

    category = ErrorCategory.BAD_REQUEST


class RequestTimeoutError(ApplicationError):
    """Raised when an operation exceeds its allotted time."""

    category = ErrorCategory.TIMEOUT


class TooManyRequestsError(ApplicationError):
    """Raised when the caller exceeded a rate limit."""

    category = ErrorCategory.RATE_LIMITED


class ServiceUnavailableError(ApplicationError):
    """Raised when a dependency is temporarily unavailable."""

    category = ErrorCategory.SERVICE_UNAVAILABLE


class BusinessRuleError(ApplicationError):
    """Raised when a business rule rejects an otherwise valid request."""

    category = ErrorCategory.BUSINESS_RULE_VIOLATION


class CustomHttpStatusError(ApplicationError):
    """Raised to answer with a caller-chosen HTTP status.

    The status comes from the instance, not from the rule table.
    The fallback error code is ``HTTP_{status}``.
    """

    category = ErrorCategory.CUSTOM_STATUS

    def __init__(
        self, message: str, http_status: int, code: str | None = None
    ) -> None:
        super().__init__(message, code, http_status=http_status)


class ExposableError(Exception):
    """An error outside the taxonomy whose message may reach the client.

    Without ``expose_message=True`` it is classified like any other
    unexpected exception. The flag must be set by the raising code.

    Attributes:
        expose_message: Whether the raw message is shown verbatim.
        error_code: Optional machine-readable error code.
    """

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        expose_message: bool = False,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.expose_message = expose_message
        super().__init__(message)


class ResponseWrapperError(Exception):
    """Base error for failures inside the wrapping machinery itself."""


class PipelineError(ResponseWrapperError):
    """Raised when an enricher or metadata provider fails.

    Always classified through the catch-all rule.

    Attributes:
        stage: "enricher" or "metadata_provider".
        extension: Class name of the failing extension.
    """

    def __init__(self, stage: str, extension: str) -> None:
        super().__init__(f"{stage} {extension} failed")
        self.stage = stage
        self.extension = extension


class EnvelopeSealedError(ResponseWrapperError):
    """Raised when an envelope is mutated after it was handed to the wire."""
