"""
Tests for exception classification.

Validates the rule table order (explicit application errors, named
categories, catch-all), error-code resolution, safe messages and the
expose-message escape hatch.
"""

import pytest

from response_wrapper.application.classifier import (
    DEFAULT_MESSAGES,
    ErrorMessages,
    ExceptionClassifier,
)
from response_wrapper.domain.errors import (
    ApplicationError,
    BadRequestError,
    BusinessRuleError,
    ConflictError,
    CustomHttpStatusError,
    ErrorCategory,
    ExposableError,
    ForbiddenError,
    NotFoundError,
    PipelineError,
    RequestTimeoutError,
    ServiceUnavailableError,
    TooManyRequestsError,
    UnauthorizedError,
    ValidationError,
)


@pytest.fixture
def classifier() -> ExceptionClassifier:
    return ExceptionClassifier()


class DuplicateEmailError(ConflictError):
    error_code = "DUPLICATE_EMAIL"


class LegacyGatewayError(RuntimeError):
    error_code = "GATEWAY_DOWN"


class TestNamedCategories:
    """Tests for the closed set of expected error categories."""

    @pytest.mark.parametrize(
        ("exc", "status", "code"),
        [
            (ValidationError(), 400, "VALIDATION_ERROR"),
            (NotFoundError("Order", 7), 404, "NOT_FOUND"),
            (ConflictError("Already exists"), 409, "CONFLICT"),
            (UnauthorizedError("Login required"), 401, "UNAUTHORIZED"),
            (ForbiddenError("Admins only"), 403, "FORBIDDEN"),
            (BadRequestError("Malformed"), 400, "BAD_REQUEST"),
            (RequestTimeoutError("Too slow"), 408, "TIMEOUT"),
            (TooManyRequestsError("Slow down"), 429, "TOO_MANY_REQUESTS"),
            (ServiceUnavailableError("Maintenance"), 503, "SERVICE_UNAVAILABLE"),
            (BusinessRuleError("Overdraft"), 400, "BUSINESS_RULE_VIOLATION"),
        ],
    )
    def test_category_status_and_code(self, classifier, exc, status, code):
        result = classifier.classify(exc)

        assert result.http_status == status
        assert result.error_code == code
        assert result.log_as_error is False
        assert result.message == DEFAULT_MESSAGES[exc.category]

    def test_not_found_message_in_errors(self, classifier):
        result = classifier.classify(NotFoundError("User", 42))

        assert result.http_status == 404
        assert result.errors == ["User (42) was not found."]

    def test_explicit_code_overrides_category_code(self, classifier):
        result = classifier.classify(NotFoundError("Invoice", 3, code="INVOICE_MISSING"))
        assert result.error_code == "INVOICE_MISSING"

    def test_ambient_code_used_before_fallback(self, classifier):
        result = classifier.classify(DuplicateEmailError("Email taken"))

        assert result.http_status == 409
        assert result.error_code == "DUPLICATE_EMAIL"

    def test_validation_errors_flattened_in_order(self, classifier):
        exc = ValidationError(
            errors={
                "email": ["email: is required"],
                "age": ["age: must be positive", "age: must be an integer"],
            }
        )
        result = classifier.classify(exc)

        assert result.errors == [
            "email: is required",
            "age: must be positive",
            "age: must be an integer",
        ]

    def test_validation_without_field_errors_uses_message(self, classifier):
        result = classifier.classify(ValidationError("Payload rejected"))
        assert result.errors == ["Payload rejected"]


class TestCustomStatus:
    """Tests for caller-chosen HTTP statuses."""

    def test_status_taken_from_instance(self, classifier):
        result = classifier.classify(CustomHttpStatusError("I'm a teapot", 418))

        assert result.http_status == 418
        assert result.error_code == "HTTP_418"
        assert result.category is ErrorCategory.CUSTOM_STATUS
        assert result.log_as_error is False

    def test_explicit_code_kept(self, classifier):
        result = classifier.classify(
            CustomHttpStatusError("Payment required", 402, code="PAYMENT_REQUIRED")
        )

        assert result.http_status == 402
        assert result.error_code == "PAYMENT_REQUIRED"


class TestApplicationErrors:
    """Tests for explicit application errors."""

    def test_declared_status_code_and_message_verbatim(self, classifier):
        exc = ApplicationError("Card declined", "PAYMENT_DECLINED", http_status=402)
        result = classifier.classify(exc)

        assert result.http_status == 402
        assert result.error_code == "PAYMENT_DECLINED"
        assert result.message == "Card declined"
        assert result.errors == ["Card declined"]
        assert result.log_as_error is True

    def test_defaults_to_500_internal_error(self, classifier):
        result = classifier.classify(ApplicationError("Ledger out of balance"))

        assert result.http_status == 500
        assert result.error_code == "INTERNAL_ERROR"
        assert result.category is ErrorCategory.APPLICATION


class TestCatchAll:
    """Tests for unexpected exceptions."""

    def test_generic_exception_does_not_leak(self, classifier):
        result = classifier.classify(RuntimeError("password=hunter2 at db01"))

        assert result.http_status == 500
        assert result.error_code == "INTERNAL_ERROR"
        assert result.message == "An unexpected error occurred"
        assert result.errors == ["An unexpected error occurred"]
        assert result.log_as_error is True
        assert "hunter2" not in result.message

    @pytest.mark.parametrize(
        ("exc", "phrase"),
        [
            (ValueError("bad int"), "Invalid request parameters"),
            (TypeError("NoneType"), "Invalid request parameters"),
            (NotImplementedError(), "Requested operation is not supported"),
            (TimeoutError(), "Request timed out"),
        ],
    )
    def test_safe_phrases(self, classifier, exc, phrase):
        result = classifier.classify(exc)

        assert result.http_status == 500
        assert result.errors == [phrase]

    def test_ambient_code_on_unexpected_exception(self, classifier):
        result = classifier.classify(LegacyGatewayError("socket closed"))

        assert result.http_status == 500
        assert result.error_code == "GATEWAY_DOWN"

    def test_pipeline_error_goes_to_catch_all(self, classifier):
        result = classifier.classify(PipelineError("enricher", "AuditEnricher"))

        assert result.http_status == 500
        assert result.error_code == "INTERNAL_ERROR"
        assert result.category is ErrorCategory.UNEXPECTED


class TestExposeMessage:
    """Tests for the opt-in raw message escape hatch."""

    def test_exposed_message_downgrades_to_400(self, classifier):
        exc = ExposableError("Quota exceeded for project", expose_message=True)
        result = classifier.classify(exc)

        assert result.http_status == 400
        assert result.error_code == "BAD_REQUEST"
        assert result.message == "Quota exceeded for project"
        assert result.errors == ["Quota exceeded for project"]
        assert result.log_as_error is False

    def test_exposed_message_keeps_error_code(self, classifier):
        exc = ExposableError("Quota exceeded", error_code="QUOTA", expose_message=True)
        assert classifier.classify(exc).error_code == "QUOTA"

    def test_not_exposed_by_default(self, classifier):
        result = classifier.classify(ExposableError("internal detail"))

        assert result.http_status == 500
        assert result.errors == ["An unexpected error occurred"]

    def test_truthy_non_bool_flag_is_not_enough(self, classifier):
        exc = ExposableError("internal detail")
        exc.expose_message = "yes"

        assert classifier.classify(exc).http_status == 500


class TestErrorMessages:
    """Tests for the injectable message table."""

    def test_override_used(self):
        classifier = ExceptionClassifier(ErrorMessages({ErrorCategory.NOT_FOUND: "Nothing here"}))
        assert classifier.classify(NotFoundError("User", 1)).message == "Nothing here"

    def test_blank_override_falls_back(self):
        messages = ErrorMessages({ErrorCategory.NOT_FOUND: "   ", ErrorCategory.CONFLICT: None})

        assert messages.get(ErrorCategory.NOT_FOUND) == DEFAULT_MESSAGES[ErrorCategory.NOT_FOUND]
        assert messages.get(ErrorCategory.CONFLICT) == DEFAULT_MESSAGES[ErrorCategory.CONFLICT]

    def test_every_category_has_a_message(self):
        messages = ErrorMessages()
        for category in ErrorCategory:
            assert messages.get(category)

    def test_blank_application_message_falls_back(self, classifier):
        result = classifier.classify(ApplicationError(""))
        assert result.message == DEFAULT_MESSAGES[ErrorCategory.APPLICATION]
