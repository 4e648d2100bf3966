"""
Exception classification.

Maps any exception to an HTTP status, a machine-readable error code,
a user message and a log severity through an explicit, ordered rule
table evaluated most-specific first:

1. Explicit application errors (ApplicationError tagged APPLICATION).
2. Named categories (validation, not found, ...), all expected
   client-driven outcomes, never logged at error severity.
3. A catch-all for everything else: 500 INTERNAL_ERROR with a safe,
   non-leaking message.

No stack traces or internal details are exposed to clients.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from response_wrapper.domain.errors import (
    ApplicationError,
    ErrorCategory,
    ExposableError,
    ValidationError,
)

INTERNAL_ERROR = "INTERNAL_ERROR"
HTTP_400 = 400
HTTP_500 = 500

DEFAULT_MESSAGES: dict[ErrorCategory, str] = {
    ErrorCategory.APPLICATION: "Application error occurred",
    ErrorCategory.VALIDATION: "Validation errors occurred",
    ErrorCategory.NOT_FOUND: "Resource not found",
    ErrorCategory.CONFLICT: "Resource conflict",
    ErrorCategory.UNAUTHORIZED: "Authentication required",
    ErrorCategory.FORBIDDEN: "Access forbidden",
    ErrorCategory.BAD_REQUEST: "Bad request",
    ErrorCategory.TIMEOUT: "Request timed out",
    ErrorCategory.RATE_LIMITED: "Too many requests",
    ErrorCategory.SERVICE_UNAVAILABLE: "Service temporarily unavailable",
    ErrorCategory.BUSINESS_RULE_VIOLATION: "Business rule violation",
    ErrorCategory.CUSTOM_STATUS: "Request could not be completed",
    ErrorCategory.UNEXPECTED: "An unexpected error occurred",
}

# Generic phrases for low-level exceptions reaching the catch-all.
# Checked in order; the first matching type wins.
SAFE_MESSAGES: tuple[tuple[type[BaseException], str], ...] = (
    (NotImplementedError, "Requested operation is not supported"),
    (TimeoutError, "Request timed out"),
    (ValueError, "Invalid request parameters"),
    (TypeError, "Invalid request parameters"),
)


class ErrorMessages:
    """Injectable table of user-facing messages per category.

    Blank or missing overrides fall back to the built-in defaults,
    so a classification never carries an empty message.
    """

    def __init__(self, overrides: Mapping[ErrorCategory, str | None] | None = None) -> None:
        self._overrides = dict(overrides or {})

    def get(self, category: ErrorCategory) -> str:
        override = self._overrides.get(category)
        if override and override.strip():
            return override
        return DEFAULT_MESSAGES[category]


@dataclass(frozen=True)
class ClassificationRule:
    """One row of the classification table.

    Attributes:
        category: Category this rule produces.
        predicate: Returns True when the rule applies to an exception.
        http_status: Canonical status, or None to read it from the instance.
        error_code: Fallback error code, or None to derive ``HTTP_{status}``.
        log_as_error: Whether matches are logged at error severity.
    """

    category: ErrorCategory
    predicate: Callable[[BaseException], bool]
    http_status: int | None
    error_code: str | None
    log_as_error: bool = False


@dataclass(frozen=True)
class ClassificationResult:
    """How an exception is presented to the client.

    Attributes:
        http_status: HTTP status code for the response.
        error_code: Machine-readable error code.
        message: User-facing summary message.
        errors: Ordered list of error messages for the envelope.
        log_as_error: Whether to log at error severity.
        category: The matched category.
    """

    http_status: int
    error_code: str
    message: str
    errors: list[str] = field(default_factory=list)
    log_as_error: bool = False
    category: ErrorCategory = ErrorCategory.UNEXPECTED


def _tagged(category: ErrorCategory) -> Callable[[BaseException], bool]:
    def predicate(exc: BaseException) -> bool:
        return isinstance(exc, ApplicationError) and exc.category is category

    return predicate


def _named(
    category: ErrorCategory, http_status: int | None, error_code: str | None
) -> ClassificationRule:
    return ClassificationRule(category, _tagged(category), http_status, error_code)


DEFAULT_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(
        ErrorCategory.APPLICATION,
        _tagged(ErrorCategory.APPLICATION),
        http_status=None,
        error_code=INTERNAL_ERROR,
        log_as_error=True,
    ),
    _named(ErrorCategory.VALIDATION, 400, "VALIDATION_ERROR"),
    _named(ErrorCategory.NOT_FOUND, 404, "NOT_FOUND"),
    _named(ErrorCategory.CONFLICT, 409, "CONFLICT"),
    _named(ErrorCategory.UNAUTHORIZED, 401, "UNAUTHORIZED"),
    _named(ErrorCategory.FORBIDDEN, 403, "FORBIDDEN"),
    _named(ErrorCategory.BAD_REQUEST, 400, "BAD_REQUEST"),
    _named(ErrorCategory.TIMEOUT, 408, "TIMEOUT"),
    _named(ErrorCategory.RATE_LIMITED, 429, "TOO_MANY_REQUESTS"),
    _named(ErrorCategory.SERVICE_UNAVAILABLE, 503, "SERVICE_UNAVAILABLE"),
    _named(ErrorCategory.BUSINESS_RULE_VIOLATION, 400, "BUSINESS_RULE_VIOLATION"),
    _named(ErrorCategory.CUSTOM_STATUS, None, None),
)


def _explicit_code(exc: BaseException) -> str | None:
    if isinstance(exc, ApplicationError) and exc.code:
        return exc.code
    return None


def _ambient_code(exc: BaseException) -> str | None:
    code = getattr(exc, "error_code", None)
    return code if isinstance(code, str) and code else None


def _safe_message(exc: BaseException, messages: ErrorMessages) -> str:
    for exc_type, phrase in SAFE_MESSAGES:
        if isinstance(exc, exc_type):
            return phrase
    return messages.get(ErrorCategory.UNEXPECTED)


class ExceptionClassifier:
    """Classifies exceptions through an ordered rule table.

    Args:
        messages: Message table; defaults to the built-in messages.
        rules: Rule table evaluated in order before the catch-all.
    """

    def __init__(
        self,
        messages: ErrorMessages | None = None,
        rules: tuple[ClassificationRule, ...] = DEFAULT_RULES,
    ) -> None:
        self._messages = messages or ErrorMessages()
        self._rules = rules

    @property
    def messages(self) -> ErrorMessages:
        return self._messages

    def classify(self, exc: BaseException) -> ClassificationResult:
        """Classify one exception.

        Args:
            exc: The exception caught at the boundary.

        Returns:
            The status, code, messages and severity to present.
        """
        for rule in self._rules:
            if rule.predicate(exc):
                return self._apply(rule, exc)
        return self._catch_all(exc)

    def _apply(self, rule: ClassificationRule, exc: BaseException) -> ClassificationResult:
        http_status = rule.http_status
        if http_status is None:
            http_status = getattr(exc, "http_status", HTTP_500)
        fallback = rule.error_code or f"HTTP_{http_status}"
        message = self._messages.get(rule.category)
        if rule.category is ErrorCategory.APPLICATION:
            # Explicit application errors carry their own message.
            message = getattr(exc, "message", None) or message
        return ClassificationResult(
            http_status=http_status,
            error_code=_explicit_code(exc) or _ambient_code(exc) or fallback,
            message=message,
            errors=self._errors_for(exc),
            log_as_error=rule.log_as_error,
            category=rule.category,
        )

    def _catch_all(self, exc: BaseException) -> ClassificationResult:
        if isinstance(exc, ExposableError) and exc.expose_message is True:
            return ClassificationResult(
                http_status=HTTP_400,
                error_code=exc.error_code or "BAD_REQUEST",
                message=exc.message,
                errors=[exc.message],
                log_as_error=False,
                category=ErrorCategory.BAD_REQUEST,
            )
        return ClassificationResult(
            http_status=HTTP_500,
            error_code=_ambient_code(exc) or INTERNAL_ERROR,
            message=self._messages.get(ErrorCategory.UNEXPECTED),
            errors=[_safe_message(exc, self._messages)],
            log_as_error=True,
            category=ErrorCategory.UNEXPECTED,
        )

    @staticmethod
    def _errors_for(exc: BaseException) -> list[str]:
        if isinstance(exc, ValidationError) and exc.errors:
            return [message for messages in exc.errors.values() for message in messages]
        return [str(exc)]
