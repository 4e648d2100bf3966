"""
Failure path: the error boundary.

ErrorEnvelopeMiddleware catches every exception escaping a handler
exactly once and answers with an error envelope. FastAPI converts its
own HTTPException and RequestValidationError into responses before
they reach any middleware, so register_error_handlers replaces those
handlers with ones that feed the same boundary.
"""

from fastapi import FastAPI
from fastapi.exception_handlers import (
    http_exception_handler,
    request_validation_exception_handler,
)
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from response_wrapper.domain.errors import (
    ApplicationError,
    BadRequestError,
    ConflictError,
    CustomHttpStatusError,
    ForbiddenError,
    NotFoundError,
    RequestTimeoutError,
    ServiceUnavailableError,
    TooManyRequestsError,
    UnauthorizedError,
    ValidationError,
)
from response_wrapper.interfaces.wrapper import get_response_wrapper

STATUS_ERRORS: dict[int, type[ApplicationError]] = {
    400: BadRequestError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    408: RequestTimeoutError,
    409: ConflictError,
    429: TooManyRequestsError,
    503: ServiceUnavailableError,
}


def translate_http_exception(exc: StarletteHTTPException) -> ApplicationError:
    """Map a framework HTTPException onto the error taxonomy."""
    detail = str(exc.detail)
    error_type = STATUS_ERRORS.get(exc.status_code)
    if error_type is None:
        return CustomHttpStatusError(detail, exc.status_code)
    return error_type(detail)


def translate_validation_error(exc: RequestValidationError) -> ValidationError:
    """Map FastAPI request validation failures onto ValidationError."""
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()))
        errors.setdefault(field, []).append(f"{field}: {error.get('msg', 'invalid')}")
    return ValidationError(errors=errors)


class ErrorEnvelopeMiddleware(BaseHTTPMiddleware):
    """Middleware that turns unhandled exceptions into error envelopes.

    Requests on excluded paths, or with error wrapping disabled,
    pass through untouched.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Run the request and wrap any exception it raises."""
        wrapper = get_response_wrapper(request)
        if wrapper is None or not wrapper.wraps_errors(request):
            return await call_next(request)
        try:
            return await call_next(request)
        except Exception as exc:
            return await wrapper.handle_exception(request, exc)


def register_error_handlers(app: FastAPI) -> None:
    """Register envelope handlers for FastAPI's built-in exceptions.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> Response:
        """Wrap HTTPException (including slowapi's RateLimitExceeded)."""
        wrapper = get_response_wrapper(request)
        if wrapper is None or not wrapper.wraps_errors(request):
            return await http_exception_handler(request, exc)
        translated = translate_http_exception(exc)
        translated.__cause__ = exc
        return await wrapper.handle_exception(
            request, translated, headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> Response:
        """Wrap request validation failures."""
        wrapper = get_response_wrapper(request)
        if wrapper is None or not wrapper.wraps_errors(request):
            return await request_validation_exception_handler(request, exc)
        translated = translate_validation_error(exc)
        translated.__cause__ = exc
        return await wrapper.handle_exception(request, translated)
