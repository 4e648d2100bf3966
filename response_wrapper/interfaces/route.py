"""
Success path: a FastAPI route class that wraps handler results.

Routes created with ResponseWrapperRoute call the original endpoint,
then hand its raw return value (before FastAPI serializes it) to the
installed ResponseWrapper. Endpoints marked with
skip_response_wrapper are left untouched.
"""

import functools
import inspect
import typing
from collections.abc import Callable
from typing import Any

from fastapi.routing import APIRoute
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request

from response_wrapper.interfaces.wrapper import get_response_wrapper

REQUEST_PARAM = "response_wrapper_request__"
WRAPPED_ATTR = "__response_wrapped__"
SKIP_ATTR = "__response_wrapper_skip__"
DEFAULT_STATUS = 200


def skip_response_wrapper(reason: str = "") -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Mark an endpoint so its results are never wrapped.

    Args:
        reason: Free-text reason, kept for documentation.
    """

    def decorator(endpoint: Callable[..., Any]) -> Callable[..., Any]:
        setattr(endpoint, SKIP_ATTR, reason)
        return endpoint

    return decorator


def _resolved_hints(endpoint: Callable[..., Any]) -> dict[str, Any]:
    try:
        return typing.get_type_hints(endpoint, include_extras=True)
    except (NameError, TypeError):
        return {}


def _is_request_annotation(annotation: Any) -> bool:
    return inspect.isclass(annotation) and issubclass(annotation, Request)


def _request_parameter_name(
    signature: inspect.Signature, hints: dict[str, Any]
) -> str | None:
    """Name of the endpoint's own Request parameter, if it declares one."""
    for parameter in signature.parameters.values():
        if _is_request_annotation(hints.get(parameter.name, parameter.annotation)):
            return parameter.name
    return None


def _signature_with_request(
    endpoint: Callable[..., Any],
) -> tuple[inspect.Signature, str]:
    """Build the signature FastAPI sees and name the Request parameter in it.

    FastAPI injects the Request into a single parameter only, so an
    endpoint that already takes one keeps it; otherwise a keyword-only
    REQUEST_PARAM is added.
    """
    signature = inspect.signature(endpoint)
    hints = _resolved_hints(endpoint)

    parameters = [
        parameter.replace(annotation=hints.get(parameter.name, parameter.annotation))
        for parameter in signature.parameters.values()
    ]
    return_annotation = hints.get("return", signature.return_annotation)

    request_name = _request_parameter_name(signature, hints)
    if request_name is not None:
        return (
            signature.replace(parameters=parameters, return_annotation=return_annotation),
            request_name,
        )

    request_parameter = inspect.Parameter(
        REQUEST_PARAM, inspect.Parameter.KEYWORD_ONLY, annotation=Request
    )
    position = next(
        (
            index
            for index, parameter in enumerate(parameters)
            if parameter.kind is inspect.Parameter.VAR_KEYWORD
        ),
        len(parameters),
    )
    parameters.insert(position, request_parameter)
    return (
        signature.replace(parameters=parameters, return_annotation=return_annotation),
        REQUEST_PARAM,
    )


def _is_async(endpoint: Callable[..., Any]) -> bool:
    return inspect.iscoroutinefunction(endpoint) or inspect.iscoroutinefunction(
        getattr(endpoint, "__call__", None)
    )


def wrap_endpoint(
    endpoint: Callable[..., Any], status_code: int | None = None
) -> Callable[..., Any]:
    """Return an endpoint whose results go through the envelope core.

    The returned callable exposes the original signature, plus a
    keyword-only Request parameter when the endpoint has none of its
    own, so FastAPI still resolves the original dependencies.
    """
    if getattr(endpoint, WRAPPED_ATTR, False) or hasattr(endpoint, SKIP_ATTR):
        return endpoint

    is_async = _is_async(endpoint)
    signature, request_name = _signature_with_request(endpoint)
    injected = request_name == REQUEST_PARAM

    async def call_endpoint(args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
        if is_async:
            return await endpoint(*args, **kwargs)
        return await run_in_threadpool(endpoint, *args, **kwargs)

    @functools.wraps(endpoint)
    async def wrapped(*args: Any, **kwargs: Any) -> Any:
        request: Request = kwargs.pop(REQUEST_PARAM) if injected else kwargs[request_name]
        wrapper = get_response_wrapper(request)
        if wrapper is None or not wrapper.wraps_success(request):
            return await call_endpoint(args, kwargs)

        context = wrapper.context_for(request)
        result = await call_endpoint(args, kwargs)
        return await wrapper.wrap_result(result, context, status_code or DEFAULT_STATUS)

    # FastAPI must see the async wrapper, not unwrap to the original callable.
    del wrapped.__wrapped__
    wrapped.__signature__ = signature  # type: ignore[attr-defined]
    setattr(wrapped, WRAPPED_ATTR, True)
    return wrapped


class ResponseWrapperRoute(APIRoute):
    """APIRoute whose endpoint results are wrapped into envelopes.

    Use as ``APIRouter(route_class=ResponseWrapperRoute)``;
    install_response_wrapper sets it on the application router.
    """

    def __init__(self, path: str, endpoint: Callable[..., Any], **kwargs: Any) -> None:
        super().__init__(
            path, wrap_endpoint(endpoint, kwargs.get("status_code")), **kwargs
        )
